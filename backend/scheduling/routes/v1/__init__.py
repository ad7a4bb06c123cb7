"""Versioned API v1 routes."""

from . import appointments, metrics

__all__ = ["appointments", "metrics"]
