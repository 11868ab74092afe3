"""Caller input routing."""
