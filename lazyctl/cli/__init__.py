"""Command-line interface for lazyctl."""
