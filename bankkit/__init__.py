"""Wrapped errors with stack traces and a structured, filterable logger."""

__version__ = "0.1.0"