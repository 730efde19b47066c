"""Configuration loading for lazyctl."""
