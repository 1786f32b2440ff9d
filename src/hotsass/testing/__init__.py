"""Test utilities for hotsass.

    from hotsass.testing import TestClient
"""

from hotsass.testing.client import TestClient

__all__ = ["TestClient"]
