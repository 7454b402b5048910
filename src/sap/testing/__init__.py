"""Test utilities for sap servers.

    from sap.testing import TestClient
"""

from sap.testing.client import TestClient

__all__ = ["TestClient"]
