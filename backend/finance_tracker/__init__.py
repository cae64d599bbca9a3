"""Personal finance tracker API."""

__version__ = "1.0.0"
