"""Probes and configuration for checking the state of a host."""

__version__ = "0.1.0"