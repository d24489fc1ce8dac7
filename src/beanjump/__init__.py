"""beanjump - navigate Spring dependency injection in Java sources."""

try:
    from importlib.metadata import version

    __version__ = version("beanjump")
except Exception:
    __version__ = "0.0.0.dev0+local"  # Fallback for development
