"""
HTTP client for the upstream book catalog.

The catalog answers ``GET {base_url}/books`` with either a JSON list of
books or an object wrapping that list under ``"books"``. Each entry has an
``id`` and a ``title`` and may carry ``author_name`` and ``price``.
"""

import logging
from decimal import Decimal

import httpx
from pydantic import BaseModel, Field, ValidationError, field_validator

from .errors import CatalogUnavailableError

logger = logging.getLogger(__name__)


class CatalogBook(BaseModel):
    """A book as reported by the upstream catalog."""

    id: int = Field(..., ge=1)
    title: str = Field(..., min_length=1, max_length=500)
    author_name: list[str] = Field(default_factory=list)
    price: Decimal | None = Field(default=None, ge=0)

    @field_validator("author_name", mode="before")
    @classmethod
    def coerce_author_name(cls, v):
        """Accept a single author as a plain string."""
        if v is None:
            return []
        if isinstance(v, str):
            return [v]
        return v


class CatalogClient:
    """
    Synchronous httpx client for the upstream catalog.

    Usable as a context manager so the connection pool is released:

    ```python
    with CatalogClient("http://catalog.local/api") as client:
        books = client.fetch_books()
    ```
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._client = httpx.Client(
            timeout=httpx.Timeout(timeout),
            follow_redirects=True,
            transport=transport,
        )

    def fetch_books(self) -> list[CatalogBook]:
        """
        Download the full catalog.

        Raises:
            CatalogUnavailableError: If the catalog cannot be reached or
                answers with an error or an unreadable payload
        """
        url = f"{self.base_url}/books"
        try:
            response = self._client.get(url)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as e:
            logger.warning("Catalog returned HTTP %s for %s", e.response.status_code, url)
            raise CatalogUnavailableError(f"HTTP {e.response.status_code}") from e
        except httpx.RequestError as e:
            logger.warning("Catalog request to %s failed: %s", url, e)
            raise CatalogUnavailableError(str(e)) from e
        except ValueError as e:
            raise CatalogUnavailableError("respuesta no es JSON válido") from e

        if isinstance(payload, dict):
            payload = payload.get("books", [])
        if not isinstance(payload, list):
            raise CatalogUnavailableError("formato de respuesta inesperado")

        try:
            books = [CatalogBook.model_validate(item) for item in payload]
        except ValidationError as e:
            raise CatalogUnavailableError(
                f"libro inválido en la respuesta: {e.error_count()} errores"
            ) from e

        logger.info("Fetched %d books from catalog", len(books))
        return books

    def is_available(self) -> bool:
        """True when the catalog answers without a server error."""
        try:
            response = self._client.get(self.base_url)
        except httpx.RequestError as e:
            logger.info("Catalog at %s is unreachable: %s", self.base_url, e)
            return False
        return response.status_code < 500

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "CatalogClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
