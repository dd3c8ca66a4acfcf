"""Legacy record store adapters.

Implementations support multiple backends:
- SQLite (zero-config, single-file)
- PostgreSQL (distributed, scalable)
"""
