"""WasteWise: waste-reporting rewards service."""

__version__ = "0.1.0"
