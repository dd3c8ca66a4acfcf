"""Adapter implementations of the core ports."""
