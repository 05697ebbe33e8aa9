"""Ports and the per-session application state."""
