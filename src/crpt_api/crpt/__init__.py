# ABOUTME: CRPT API integration package.
# ABOUTME: Exports the rate-limited document client.

from .client import (
    DEFAULT_CONNECT_TIMEOUT,
    DEFAULT_ENDPOINT,
    DEFAULT_READ_TIMEOUT,
    CrptApi,
)

__all__ = [
    "CrptApi",
    "DEFAULT_CONNECT_TIMEOUT",
    "DEFAULT_ENDPOINT",
    "DEFAULT_READ_TIMEOUT",
]
