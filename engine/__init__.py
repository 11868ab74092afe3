"""Matching and resolution engine."""
