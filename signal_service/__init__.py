"""Async services around the signal engine: evaluation, lifecycle, replacement."""
