"""HTTP transports that dispatch assembled requests.

Classes:
    :class:`HttpTransport` -- blocking transport backed by :class:`httpx.Client`.
    :class:`AsyncHttpTransport` -- non-blocking transport backed by :class:`httpx.AsyncClient`.
"""

from openreq.client.async_client import AsyncHttpTransport
from openreq.client.sync_client import HttpTransport

__all__ = ["HttpTransport", "AsyncHttpTransport"]
