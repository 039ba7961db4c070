"""Cached, concurrent page thumbnail rendering for PDF documents."""

__version__ = "0.1.0"
