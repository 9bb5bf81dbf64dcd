"""
Client du fournisseur de metadonnees de series.

- TVDBShowResolver: Implementation de IShowResolver sur l'API TVDB v3
- APICache: Cache persistant avec TTL (recherche 24h, listings 3j)
- RateLimitError / request_with_retry: relance sur 429, 5xx passagers et erreurs reseau
"""

from tvrenamer.adapters.api.cache import APICache
from tvrenamer.adapters.api.retry import RateLimitError, request_with_retry
from tvrenamer.adapters.api.tvdb_client import TVDBShowResolver

__all__ = [
    "APICache",
    "RateLimitError",
    "TVDBShowResolver",
    "request_with_retry",
]
