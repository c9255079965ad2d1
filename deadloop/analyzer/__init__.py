"""Liveness analysis for JavaScript/TypeScript functions."""
