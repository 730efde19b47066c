"""Utility helpers for lazyctl."""
