"""PM API - product master data maintenance service."""
__version__ = "1.0.0"
