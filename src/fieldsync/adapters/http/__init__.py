"""
HTTP Adapter - Implementation of TransportPort for the remote REST API.
"""

from .client import RemoteApiClient
from .transport import HttpTransport

__all__ = [
    "RemoteApiClient",
    "HttpTransport",
]
