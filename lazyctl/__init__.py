"""lazyctl - LazyVim starter and plugin installer."""

__version__ = "0.1.0"
