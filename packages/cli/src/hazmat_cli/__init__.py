"""Hazmat KB CLI - command-line interface for the validation pipeline."""

__version__ = "1.0.0"
