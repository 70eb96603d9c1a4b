"""Shared helpers: logging, HTTP access and proxy routing."""
