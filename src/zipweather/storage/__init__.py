from .cache import GEOCODE_CACHE_TTL_SECONDS, CacheEntry, GeocodeCache

__all__ = [
    "CacheEntry",
    "GEOCODE_CACHE_TTL_SECONDS",
    "GeocodeCache",
]
