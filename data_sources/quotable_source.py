"""
Quotable API source.
Fetches random quotes, tagged quotes and the tag list from the public
quotable API over one shared aiohttp session. A single attempt per call,
bounded by the configured timeout.
"""

import asyncio
from typing import Any, Dict, List, Optional

import aiohttp

from utils import ds_logger, provider_metrics
from utils.exceptions import UpstreamUnavailableError, ErrorCodes, ValidationError
from stores.models import QuoteRecord

from .base_source import BaseQuoteSource


DEFAULT_BASE_URL = "https://api.quotable.io"
DEFAULT_USER_AGENT = "quote-browser/1.0"


class QuotableSource(BaseQuoteSource):
    """quotable.io 数据源"""

    def __init__(self, base_url: str = DEFAULT_BASE_URL, timeout: float = 2.0,
                 verify_ssl: bool = True, user_agent: str = DEFAULT_USER_AGENT):
        super().__init__("Quotable")
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.verify_ssl = verify_ssl
        self.user_agent = user_agent

    async def _initialize_impl(self):
        timeout = aiohttp.ClientTimeout(total=self.timeout)
        connector = aiohttp.TCPConnector(ssl=self.verify_ssl)
        self.session = aiohttp.ClientSession(
            timeout=timeout,
            connector=connector,
            headers={'User-Agent': self.user_agent}
        )

    async def _fetch_json(self, path: str, params: Optional[Dict[str, str]] = None) -> Any:
        """请求并解析 JSON；任何失败都转换为 UpstreamUnavailableError"""
        if self.session is None:
            await self.initialize()

        url = f"{self.base_url}{path}"
        provider_metrics.increment("requests")
        try:
            async with self.session.get(url, params=params) as response:
                if response.status < 200 or response.status >= 300:
                    raise UpstreamUnavailableError(
                        f"Provider returned HTTP {response.status}",
                        ErrorCodes.DATASOURCE_CONNECTION_FAILED,
                        {"url": url, "status": response.status}
                    )
                return await response.json(content_type=None)
        except asyncio.TimeoutError as e:
            provider_metrics.increment("timeouts")
            raise UpstreamUnavailableError(
                f"Provider timed out after {self.timeout}s",
                ErrorCodes.NETWORK_TIMEOUT,
                {"url": url}
            ) from e
        except aiohttp.ClientError as e:
            raise UpstreamUnavailableError(
                f"Provider request failed: {e}",
                ErrorCodes.DATASOURCE_CONNECTION_FAILED,
                {"url": url}
            ) from e
        except ValueError as e:
            raise UpstreamUnavailableError(
                "Provider returned malformed JSON",
                ErrorCodes.DATASOURCE_INVALID_RESPONSE,
                {"url": url}
            ) from e

    def _unavailable(self, operation: str, error: UpstreamUnavailableError) -> None:
        provider_metrics.increment("failures")
        ds_logger.warning(f"[{self.name}] {operation} unavailable: {error.message}")

    @staticmethod
    def _to_record(item: Any) -> Optional[QuoteRecord]:
        try:
            return QuoteRecord.from_dict(item)
        except ValidationError:
            return None

    async def get_random_quote(self) -> Optional[QuoteRecord]:
        try:
            payload = await self._fetch_json("/random")
            record = self._to_record(payload)
            if record is None:
                raise UpstreamUnavailableError(
                    "Provider quote lacks content or author",
                    ErrorCodes.DATASOURCE_INVALID_RESPONSE
                )
        except UpstreamUnavailableError as e:
            self._unavailable("random quote", e)
            return None

        provider_metrics.increment("successes")
        return record

    async def get_quotes_by_tag(self, tag: str) -> Optional[List[QuoteRecord]]:
        try:
            payload = await self._fetch_json("/quotes", params={"tags": tag})
            if not isinstance(payload, dict) or not isinstance(payload.get("results"), list):
                raise UpstreamUnavailableError(
                    "Provider response lacks results",
                    ErrorCodes.DATASOURCE_INVALID_RESPONSE
                )
        except UpstreamUnavailableError as e:
            self._unavailable(f"quotes for '{tag}'", e)
            return None

        records = [record for record in map(self._to_record, payload["results"]) if record]
        provider_metrics.increment("successes")
        ds_logger.debug(f"[{self.name}] {len(records)} quotes for '{tag}'")
        return records

    async def get_tags(self) -> Optional[List[str]]:
        try:
            payload = await self._fetch_json("/tags")
            if not isinstance(payload, list):
                raise UpstreamUnavailableError(
                    "Provider tag list is not an array",
                    ErrorCodes.DATASOURCE_INVALID_RESPONSE
                )
        except UpstreamUnavailableError as e:
            self._unavailable("tag list", e)
            return None

        tags: List[str] = []
        for item in payload:
            name = item.get("name") if isinstance(item, dict) else None
            if isinstance(name, str) and name.strip():
                label = name.strip().lower()
                if label not in tags:
                    tags.append(label)

        provider_metrics.increment("successes")
        return tags

    def get_status(self) -> dict:
        status = super().get_status()
        status.update({"base_url": self.base_url, "timeout": self.timeout})
        return status
