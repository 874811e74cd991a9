"""Shared HTTP, retry, cache, error and logging helpers."""
