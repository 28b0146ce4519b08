"""I/O layer for correlation results."""

from .base import CorrelationReader, CorrelationWriter
from .formats.text import CorrelationTextReader, CorrelationTextWriter

__all__ = [
    # Base classes
    "CorrelationReader",
    "CorrelationWriter",
    # Formats
    "CorrelationTextReader",
    "CorrelationTextWriter",
]
