"""vlayer: static HIPAA compliance scanner."""

__version__ = "0.4.0"
