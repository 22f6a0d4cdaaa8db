"""HTTP configuration constants for chunkstore clients."""

DEFAULT_CONTENT_URL = "https://api-content.dropbox.com/1"
DEFAULT_TIMEOUT = 60.0


__all__ = ["DEFAULT_CONTENT_URL", "DEFAULT_TIMEOUT"]
