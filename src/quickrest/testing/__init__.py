"""Test utilities for quickrest applications.

Provides an in-process test client::

    from quickrest.testing import TestClient
"""

from quickrest.testing.client import TestClient, TestResponse

__all__ = [
    "TestClient",
    "TestResponse",
]
