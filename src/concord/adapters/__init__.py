"""Adapters to HTTP APIs and local storage."""
