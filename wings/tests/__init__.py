"""Test suite for the Wings adapter.

Organized into three categories:

1. core/: Unit tests for the registry, transformers and resource service
   - No external dependencies, fast execution
   - Uses in-memory fakes for ports

2. adapters/: Integration tests for store adapters
   - SQLite against a temporary database file
   - PostgreSQL against a mocked asyncpg pool

3. fakes/: Port implementations and sample models for testing
"""
