"""Utility helpers (logging, terminal output)."""
