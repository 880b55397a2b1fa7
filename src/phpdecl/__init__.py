"""Declaration extractor for class-based PHP source files."""

__version__ = "0.1.0"
