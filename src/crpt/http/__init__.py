"""HTTP transport layer."""

from crpt.http.client import JSON_CONTENT_TYPE, AsyncHttpTransport, HttpTransport

__all__ = ["AsyncHttpTransport", "HttpTransport", "JSON_CONTENT_TYPE"]
