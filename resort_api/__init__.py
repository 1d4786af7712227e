"""Goa Resort backend: user accounts and customer enquiries."""
__version__ = "1.0.0"
