"""Correlation output formats."""

from .text import CorrelationTextReader, CorrelationTextWriter

__all__ = ["CorrelationTextReader", "CorrelationTextWriter"]
