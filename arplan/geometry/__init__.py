"""Shared geometric primitives and constants."""
