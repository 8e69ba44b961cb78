"""Qdrant REST backend."""

from __future__ import annotations

import ipaddress
import logging
import math
from typing import Any, Dict, List, Optional, Sequence
from urllib.parse import quote, urlsplit

import httpx

from ..errors import ConfigError, ProtocolError, SecurityPolicyError, TransportError
from .adapter import VectorStore
from .types import Point, SearchResult

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 5.0
DEFAULT_UPSERT_TIMEOUT = 10.0

LOCAL_HOSTNAMES = frozenset(
    {
        "localhost",
        "host.docker.internal",
        "host.containers.internal",
    }
)


def is_local_host(host: str) -> bool:
    """True for loopback addresses and the container-to-host aliases."""
    host = host.strip().strip("[]").lower()
    if host in LOCAL_HOSTNAMES:
        return True
    try:
        return ipaddress.ip_address(host).is_loopback
    except ValueError:
        return False


def check_transport_security(url: str, api_key: Optional[str]) -> bool:
    """Apply the credential transport policy to ``url``.

    Returns True when a credential will travel over plain http to a local
    host. Raises SecurityPolicyError when it would reach a remote host
    unencrypted.
    """
    parts = urlsplit(url)
    scheme = (parts.scheme or "").lower()
    if scheme not in ("http", "https") or not parts.hostname:
        raise ConfigError(f"Qdrant URL must be an http(s) URL with a host: {url!r}")

    if not api_key or scheme == "https":
        return False

    if is_local_host(parts.hostname):
        logger.warning(
            "Qdrant API key is sent over unencrypted http to local host %s", parts.hostname
        )
        return True

    logger.error(
        "Insecure Qdrant API key usage detected for non-local connection (%s). Refusing to start.",
        url,
    )
    raise SecurityPolicyError(url)


def _collection_path(name: str) -> str:
    return f"/collections/{quote(name, safe='')}"


def _is_number(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


class QdrantStore(VectorStore):
    """Vector store backed by the Qdrant HTTP API.

    One persistent ``httpx.AsyncClient`` is opened lazily and reused until
    :meth:`aclose`. Every public method is a single HTTP round trip.
    """

    def __init__(
        self,
        url: str,
        api_key: Optional[str] = None,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        upsert_timeout: float = DEFAULT_UPSERT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._url = (url or "").strip().rstrip("/")
        self._api_key = (api_key or "").strip() or None
        self.insecure_local_transport = check_transport_security(self._url, self._api_key)

        if timeout <= 0 or upsert_timeout <= 0:
            raise ConfigError("Qdrant timeouts must be > 0")
        self._timeout = float(timeout)
        self._upsert_timeout = float(upsert_timeout)
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def url(self) -> str:
        return self._url

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["api-key"] = self._api_key
        return headers

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            kwargs: Dict[str, Any] = {
                "base_url": self._url,
                "headers": self._headers(),
                "timeout": self._timeout,
            }
            if self._transport is not None:
                kwargs["transport"] = self._transport
            self._client = httpx.AsyncClient(**kwargs)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Optional[Dict[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> Any:
        logger.debug("Qdrant %s %s%s", method, self._url, path)
        try:
            response = await self._get_client().request(
                method,
                path,
                json=json,
                timeout=timeout if timeout is not None else self._timeout,
            )
        except httpx.TimeoutException as e:
            raise TransportError(f"Qdrant request timed out: {method} {path}") from e
        except httpx.HTTPError as e:
            raise TransportError(f"Qdrant request failed: {method} {path}: {e}") from e

        if not response.is_success:
            logger.debug("Qdrant error body: %s", response.text[:500])
            raise TransportError(
                f"HTTP error! Status: {response.status_code}",
                status_code=response.status_code,
            )

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise ProtocolError(f"Qdrant returned a non-JSON body for {method} {path}") from e

    async def list_collections(self) -> List[str]:
        data = await self._request("GET", "/collections")
        result = data.get("result") if isinstance(data, dict) else None
        collections = result.get("collections") if isinstance(result, dict) else None
        if not isinstance(collections, list):
            raise ProtocolError("Invalid response from Qdrant: missing result.collections")
        names: List[str] = []
        for entry in collections:
            name = entry.get("name") if isinstance(entry, dict) else None
            if not isinstance(name, str):
                raise ProtocolError("Invalid response from Qdrant: collection without a name")
            names.append(name)
        return names

    async def create_collection(self, name: str, vector_size: int) -> None:
        if vector_size <= 0:
            raise ConfigError("vector_size must be > 0")
        await self._request(
            "PUT",
            _collection_path(name),
            json={"vectors": {"size": int(vector_size), "distance": "Cosine"}},
        )
        logger.info("Created Qdrant collection %s (size=%d)", name, vector_size)

    async def add_documents(self, collection: str, points: Sequence[Point]) -> None:
        await self._request(
            "PUT",
            f"{_collection_path(collection)}/points",
            json={"points": [p.to_wire() for p in points]},
            timeout=self._upsert_timeout,
        )
        logger.debug("Upserted %d points into %s", len(points), collection)

    async def search(self, collection: str, vector: List[float], limit: int = 10) -> List[SearchResult]:
        data = await self._request(
            "POST",
            f"{_collection_path(collection)}/points/search",
            json={
                "vector": vector,
                "limit": int(limit),
                "with_payload": True,
                "with_vector": True,
            },
        )
        hits = data.get("result") if isinstance(data, dict) else None
        if not isinstance(hits, list):
            raise ProtocolError("Invalid response from Qdrant: search result is not a list")

        results: List[SearchResult] = []
        for hit in hits:
            if not isinstance(hit, dict) or not _is_number(hit.get("score")):
                raise ProtocolError("Invalid response from Qdrant: search hit without a score")
            payload = hit.get("payload")
            raw_vector = hit.get("vector")
            vector_out: Optional[List[float]] = None
            # Named-vector collections return a dict here; only plain lists are kept.
            if isinstance(raw_vector, list) and all(_is_number(v) for v in raw_vector):
                vector_out = [float(v) for v in raw_vector]
            results.append(
                SearchResult(
                    id=str(hit.get("id")),
                    score=float(hit["score"]),
                    payload=payload if isinstance(payload, dict) else {},
                    vector=vector_out,
                )
            )
        return results

    async def delete_collection(self, name: str) -> None:
        await self._request("DELETE", _collection_path(name))
        logger.info("Deleted Qdrant collection %s", name)


def create_store(
    url: str,
    api_key: Optional[str] = None,
    *,
    timeout: float = DEFAULT_TIMEOUT,
    upsert_timeout: float = DEFAULT_UPSERT_TIMEOUT,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> QdrantStore:
    """Factory for the vector store."""
    return QdrantStore(
        url,
        api_key,
        timeout=timeout,
        upsert_timeout=upsert_timeout,
        transport=transport,
    )
