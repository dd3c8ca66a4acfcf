"""Integration tests for store adapters."""
