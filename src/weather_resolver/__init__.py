"""Weather lookup with multi-provider fallback and caching."""

__version__ = "0.1.0"
