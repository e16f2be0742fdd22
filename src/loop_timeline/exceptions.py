"""Excepciones del paquete."""

from __future__ import annotations


class LoopTimelineError(Exception):
    """Base error for loop_timeline."""


class DataSourceError(LoopTimelineError):
    """Glucose samples could not be fetched or parsed."""


class ConfigurationError(LoopTimelineError):
    """Stored or user-supplied configuration is invalid."""
