"""Workspace generation core."""
