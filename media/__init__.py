"""Streaming media helpers."""
