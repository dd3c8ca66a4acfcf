"""Fake port implementations and sample models for testing.

- FakeLegacyStorePort: In-memory legacy record persistence
- Book / BookResource: A sample legacy/normalized type pair
"""

from .models import Book, BookResource, Monograph, MonographResource
from .store import FakeLegacyStorePort

__all__ = [
    "Book",
    "BookResource",
    "FakeLegacyStorePort",
    "Monograph",
    "MonographResource",
]
