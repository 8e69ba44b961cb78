"""Exception taxonomy for better-qdrant-core."""

from typing import Optional


class BetterQdrantError(Exception):
    """Base exception for all better-qdrant errors."""

    pass


# Config errors


class ConfigError(BetterQdrantError, ValueError):
    """Missing or invalid provider, store or chunker configuration."""

    pass


# Caller input errors


class ValidationError(BetterQdrantError, ValueError):
    """Caller supplied malformed input (unknown provider, unsafe path, ...)."""

    pass


# Remote service errors


class TransportError(BetterQdrantError):
    """Request to the vector store or an embedding provider failed."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class ProtocolError(BetterQdrantError):
    """Remote service answered, but the response is not usable."""

    pass


class SecurityPolicyError(BetterQdrantError):
    """A credential would be sent over an unencrypted channel to a remote host."""

    def __init__(self, url: str) -> None:
        self.url = url
        super().__init__(
            "Insecure Qdrant API key usage detected for non-local connection "
            f"({url}). Use an https URL or remove the API key."
        )
