"""HTTP clients that expose list endpoints as fetch strategies."""

from pagekit.clients.http_client import ApiClient

__all__ = ["ApiClient"]
