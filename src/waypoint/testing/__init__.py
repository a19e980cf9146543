"""Test utilities for waypoint routers.

Provides a test client and response assertions::

    from waypoint.testing import TestClient, assert_body
"""

from waypoint.testing.assertions import assert_allow, assert_body, assert_status
from waypoint.testing.client import TestClient

__all__ = [
    "TestClient",
    "assert_allow",
    "assert_body",
    "assert_status",
]
