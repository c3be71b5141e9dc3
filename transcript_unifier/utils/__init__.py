"""Utility helpers for the transcript unification pipeline."""
