"""AutoShorts - transcript-driven highlight clips in vertical format."""

__version__ = "1.0.0"
