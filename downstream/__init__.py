"""Compatibility testing of a library revision against its dependents."""

__version__ = "0.1.0"
