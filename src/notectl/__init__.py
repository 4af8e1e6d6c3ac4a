"""notectl — schema-driven markdown vault maintenance CLI."""

__version__ = "0.1.0"
