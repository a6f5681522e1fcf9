"""Rendering of the blocked spectrum and the weighted baseline histogram (matplotlib)."""
