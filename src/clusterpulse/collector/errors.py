"""
Failure types for a single health fetch.

The collector treats all of them the same way (up=0, no field metrics),
except DecodeError which also bumps the JSON parse failure counter.
"""

from __future__ import annotations


class FetchError(Exception):
    """Base class for anything that stops us getting a HealthSnapshot."""


class TransportError(FetchError):
    """Request could not be sent or the connection failed."""


class UnexpectedStatus(FetchError):

    def __init__(self, status_code: int, url: str = ""):
        self.status_code = status_code
        self.url = url
        super().__init__(f"HTTP request failed with code {status_code}")


class DecodeError(FetchError):
    """Body was not valid JSON or did not match the health schema."""
