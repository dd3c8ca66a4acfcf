"""Unit tests for core conversion logic.

These tests exercise the core without external dependencies.
All external ports are replaced with in-memory fakes from tests/fakes/.
"""
