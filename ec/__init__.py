"""ec - easy container controls for LXD instances."""

__version__ = "0.1.0"
