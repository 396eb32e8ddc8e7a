"""HTTP client for the external embedding API.

Talks to the Generative Language REST API (``embedContent``). Any failure is
raised as :class:`EmbeddingClientError`; deciding what to do about it is the
provider's job.
"""

import logging
from typing import TYPE_CHECKING, Protocol

import httpx

from ...errors import EmbeddingClientError

if TYPE_CHECKING:
    from ...config import Settings

logger = logging.getLogger(__name__)


class EmbeddingClient(Protocol):
    """Anything that can turn a text into a vector."""

    async def embed(self, text: str) -> list[float]: ...


class GeminiEmbeddingClient:
    """Embedding client for Gemini ``text-embedding-004`` (768 dimensions).

    Example:
        async with GeminiEmbeddingClient(api_key="...") as client:
            vector = await client.embed("water damage in storage rooms")
    """

    def __init__(
        self,
        api_key: str,
        model: str = "text-embedding-004",
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        timeout: float = 5.0,
        dimensions: int | None = 768,
        http_client: httpx.AsyncClient | None = None,
    ):
        """Initialize the client.

        Args:
            api_key: API key sent as the ``key`` query parameter.
            model: Embedding model name.
            base_url: API base URL.
            timeout: Per-request timeout in seconds.
            dimensions: Expected vector length (None skips the check).
            http_client: Optional shared httpx client (owned by the caller).
        """
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.dimensions = dimensions
        self._client = http_client
        self._owns_client = http_client is None

    @classmethod
    def from_settings(cls, settings: "Settings") -> "GeminiEmbeddingClient | None":
        """Build a client from settings, or None when no API key is configured."""
        if not settings.gemini_api_key:
            logger.warning("Gemini API key not configured - embeddings unavailable")
            return None
        return cls(
            api_key=settings.gemini_api_key,
            model=settings.embedding_model,
            base_url=settings.gemini_api_base,
            timeout=settings.embedding_timeout_seconds,
            dimensions=settings.embedding_dimensions,
        )

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def embed(self, text: str) -> list[float]:
        """Generate an embedding for one text.

        Raises:
            EmbeddingClientError: On timeout, transport error, non-2xx status
                or a malformed response.
        """
        url = f"{self.base_url}/models/{self.model}:embedContent"
        payload = {
            "model": f"models/{self.model}",
            "content": {"parts": [{"text": text}]},
        }

        try:
            response = await self._get_client().post(
                url,
                params={"key": self.api_key},
                json=payload,
                timeout=self.timeout,
            )
        except httpx.TimeoutException as e:
            raise EmbeddingClientError("Embedding request timeout") from e
        except httpx.RequestError as e:
            raise EmbeddingClientError(f"Embedding request error: {e}") from e

        if not 200 <= response.status_code < 300:
            raise EmbeddingClientError(
                f"HTTP {response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
            )

        try:
            values = response.json()["embedding"]["values"]
        except (ValueError, KeyError, TypeError) as e:
            raise EmbeddingClientError("Malformed embedding response") from e

        if not isinstance(values, list) or not values:
            raise EmbeddingClientError("Embedding response contained no values")
        if self.dimensions is not None and len(values) != self.dimensions:
            raise EmbeddingClientError(
                f"Expected {self.dimensions} dimensions, got {len(values)}"
            )
        return [float(v) for v in values]

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "GeminiEmbeddingClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
