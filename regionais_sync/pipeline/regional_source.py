"""Retrieval of the external regionais snapshot.

The external API answers `GET <url>` with a JSON array of
`{"id": <int>, "nome": <str>}` objects. The whole list comes back in one
response; there is no pagination and no change feed.
"""

from __future__ import annotations

import logging
from typing import List, NamedTuple, Optional

import httpx
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from ..core.errors import FetchError
from ..repo.schema import NOME_MAX_LENGTH


LOG = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10.0


class ExternalRegional(NamedTuple):
    external_id: int
    nome: str


class RegionalPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    # longer names would be rejected by the regionais table mid-cycle
    nome: str = Field(max_length=NOME_MAX_LENGTH)


_PAYLOAD_ADAPTER = TypeAdapter(Optional[List[RegionalPayload]])


def parse_regionais(content: bytes) -> List[ExternalRegional]:
    """Validate a raw response body into snapshot entries.

    An empty body or a JSON `null` yields an empty list. Malformed JSON or
    entries missing `id`/`nome`, or with a `nome` longer than
    `NOME_MAX_LENGTH`, raise `FetchError`.
    """
    if not content or not content.strip():
        return []
    try:
        items = _PAYLOAD_ADAPTER.validate_json(content)
    except ValidationError as exc:
        raise FetchError(f"Invalid regionais payload: {exc.error_count()} error(s)") from exc
    return [ExternalRegional(item.id, item.nome) for item in items or []]


class RegionalSource:
    """Fetches the authoritative regionais list over HTTP.

    A single failed call yields nothing: there are no retries and no
    partial results. Pass `client` to reuse an `httpx.Client` (its own
    transport and timeout settings apply); otherwise a short-lived client
    is opened per call with `timeout`.
    """

    def __init__(self, url: str, timeout: float = DEFAULT_TIMEOUT_SECONDS, client: Optional[httpx.Client] = None) -> None:
        self.url = url
        self.timeout = timeout
        self._client = client

    def _get(self) -> httpx.Response:
        if self._client is not None:
            return self._client.get(self.url)
        with httpx.Client(timeout=self.timeout) as client:
            return client.get(self.url)

    def fetch(self) -> List[ExternalRegional]:
        LOG.debug("Fetching regionais from %s", self.url)
        try:
            response = self._get()
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise FetchError(f"External API answered {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            raise FetchError(f"Request to external API failed: {type(exc).__name__}") from exc

        entries = parse_regionais(response.content)
        LOG.debug("Fetched %d regionais from %s", len(entries), self.url)
        return entries


__all__ = ["ExternalRegional", "RegionalPayload", "RegionalSource", "parse_regionais", "DEFAULT_TIMEOUT_SECONDS"]
