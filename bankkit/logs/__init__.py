"""Structured logging: configuration, level filters, hooks, handlers and a test logger."""

__all__ = ["config", "filter", "handler", "logger", "logutil", "testlog"]