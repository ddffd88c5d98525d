"""docforge: feature documentation generated from a code base's symbol outline."""

__version__ = "0.1.0"
