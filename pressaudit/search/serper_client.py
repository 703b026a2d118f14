"""Async Serper client used to find brand mentions on a single publication."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Set

import httpx
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from ..core import (
    APIConfig,
    ConfigurationError,
    InvalidCredentialsError,
    MentionCandidate,
    PressAuditError,
    QuotaExceededError,
    RateLimitError,
    SearchAPIError,
)

LOGGER = logging.getLogger(__name__)

_QUOTA_MARKERS = ("credit", "quota")


class SerperOrganicResult(BaseModel):
    """Single organic hit as returned by Serper."""

    title: str = ""
    snippet: str = Field(default="", description="Result description")
    link: str = ""


@dataclass
class SerperClientSettings:
    """Runtime options for the Serper client."""

    api_key: str
    base_url: str = "https://google.serper.dev"
    timeout: float = 30.0
    locale: str = "us"
    language: str = "en"
    primary_result_count: int = 15
    supplementary_result_count: int = 10
    min_unique_results: int = 3

    @classmethod
    def from_api_config(cls, config: APIConfig) -> "SerperClientSettings":
        return cls(
            api_key=config.serper_api_key,
            timeout=config.search_timeout,
            locale=config.search_locale,
            language=config.search_language,
            primary_result_count=config.primary_result_count,
            supplementary_result_count=config.supplementary_result_count,
        )


class SerperClient:
    """Async wrapper around Serper's search endpoint."""

    def __init__(
        self,
        settings: SerperClientSettings,
        *,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        if not settings.api_key or not settings.api_key.strip():
            raise ConfigurationError(
                "Serper API key is required",
                config_key="SERPER_API_KEY",
            )
        self._settings = settings
        self._client = client
        self._owns_client = client is None

    @classmethod
    def from_config(
        cls,
        config: APIConfig,
        *,
        client: Optional[httpx.AsyncClient] = None,
    ) -> "SerperClient":
        return cls(SerperClientSettings.from_api_config(config), client=client)

    @property
    def settings(self) -> SerperClientSettings:
        return self._settings

    async def __aenter__(self) -> "SerperClient":
        await self._ensure_client()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:  # type: ignore[override]
        await self.aclose()

    async def aclose(self) -> None:
        if self._client and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def search(self, domain: str, brand_name: str) -> List[MentionCandidate]:
        """Return unique-by-link candidates mentioning ``brand_name`` on ``domain``.

        An exact-phrase query runs first; when it yields fewer than
        ``min_unique_results`` hits a broader unquoted query tops it up.
        """

        seen_links: Set[str] = set()
        candidates: List[MentionCandidate] = []

        primary_query = f'site:{domain} "{brand_name}"'
        primary = await self._query(primary_query, self._settings.primary_result_count, domain=domain)
        self._merge(primary, candidates, seen_links)

        if len(candidates) < self._settings.min_unique_results:
            broad_query = f"site:{domain} {brand_name}"
            try:
                broad = await self._query(broad_query, self._settings.supplementary_result_count, domain=domain)
            except PressAuditError as exc:
                LOGGER.warning(
                    "Supplementary search failed; using primary results only",
                    extra={"domain": domain, "error_code": exc.error_code},
                )
            else:
                self._merge(broad, candidates, seen_links)

        LOGGER.info(
            "Search completed",
            extra={"domain": domain, "brand_name": brand_name, "results": len(candidates)},
        )
        return candidates

    @staticmethod
    def _merge(
        results: List[SerperOrganicResult],
        candidates: List[MentionCandidate],
        seen_links: Set[str],
    ) -> None:
        for result in results:
            if not result.link or result.link in seen_links:
                continue
            seen_links.add(result.link)
            candidates.append(
                MentionCandidate(title=result.title, snippet=result.snippet, link=result.link)
            )

    async def _query(self, query: str, result_count: int, *, domain: str) -> List[SerperOrganicResult]:
        payload = {
            "q": query,
            "num": result_count,
            "gl": self._settings.locale,
            "hl": self._settings.language,
        }
        data = await self._post_json("/search", payload, domain=domain)
        organic = data.get("organic") or []
        if not isinstance(organic, list):
            raise SearchAPIError(
                "Serper returned an unexpected payload",
                query=query,
                domain=domain,
                endpoint="/search",
            )
        results: List[SerperOrganicResult] = []
        for item in organic:
            if not isinstance(item, dict):
                continue
            try:
                results.append(
                    SerperOrganicResult(
                        title=item.get("title") or "",
                        snippet=item.get("snippet") or item.get("description") or "",
                        link=item.get("link") or "",
                    )
                )
            except PydanticValidationError as exc:
                LOGGER.warning(
                    "Skipping malformed Serper result",
                    extra={"domain": domain, "query": query, "error": exc.errors()[0].get("msg")},
                )
        return results

    async def _post_json(self, path: str, payload: Dict[str, Any], *, domain: str) -> Dict[str, Any]:
        client = await self._ensure_client()
        headers = {
            "X-API-KEY": self._settings.api_key,
            "Content-Type": "application/json",
        }
        query = payload.get("q")

        try:
            response = await client.post(
                path,
                json=payload,
                headers=headers,
                timeout=self._settings.timeout,
            )
        except httpx.RequestError as exc:
            raise SearchAPIError(
                "Serper request failed",
                query=query,
                domain=domain,
                endpoint=path,
                cause=exc,
            ) from exc

        if response.status_code >= 400:
            raise self._map_error(response, path=path, query=query, domain=domain)

        try:
            data = response.json()
        except ValueError as exc:
            raise SearchAPIError(
                "Serper returned invalid JSON",
                status_code=response.status_code,
                query=query,
                domain=domain,
                endpoint=path,
            ) from exc
        if not isinstance(data, dict):
            raise SearchAPIError(
                "Serper returned an unexpected payload",
                status_code=response.status_code,
                query=query,
                domain=domain,
                endpoint=path,
            )

        error = data.get("error") or data.get("message")
        if error and "organic" not in data:
            raise self._classify_message(str(error), status_code=response.status_code, path=path, query=query, domain=domain)

        LOGGER.debug("Serper request succeeded", extra={"path": path, "query": query})
        return data

    async def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(base_url=self._settings.base_url)
        return self._client

    def _map_error(
        self,
        response: httpx.Response,
        *,
        path: str,
        query: Optional[str],
        domain: str,
    ) -> PressAuditError:
        try:
            data = response.json()
        except ValueError:
            data = {"error": response.text}
        if not isinstance(data, dict):
            data = {"error": str(data)}
        message = str(data.get("error") or data.get("message") or response.text or "Serper request failed")
        status = response.status_code

        if status in (401, 403):
            LOGGER.error("Serper rejected the API key", extra={"path": path, "status_code": status})
            return InvalidCredentialsError(
                message,
                service="serper",
                status_code=status,
                endpoint=path,
            )
        if status == 429:
            LOGGER.warning("Serper rate limit hit", extra={"path": path})
            retry_after = response.headers.get("Retry-After")
            return RateLimitError(
                message,
                service="serper",
                status_code=status,
                endpoint=path,
                retry_after=int(retry_after) if retry_after and retry_after.isdigit() else None,
            )
        return self._classify_message(message, status_code=status, path=path, query=query, domain=domain, response_data=data)

    @staticmethod
    def _classify_message(
        message: str,
        *,
        status_code: Optional[int],
        path: str,
        query: Optional[str],
        domain: str,
        response_data: Optional[Dict[str, Any]] = None,
    ) -> PressAuditError:
        lowered = message.lower()
        if any(marker in lowered for marker in _QUOTA_MARKERS):
            return QuotaExceededError(
                message,
                service="serper",
                status_code=status_code,
                endpoint=path,
            )
        return SearchAPIError(
            message,
            status_code=status_code,
            response_data=response_data,
            query=query,
            domain=domain,
            endpoint=path,
        )


__all__ = ["SerperClient", "SerperClientSettings", "SerperOrganicResult"]
