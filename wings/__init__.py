"""Wings: bridges a legacy record model to a normalized resource model."""

__version__ = "0.1.0"
