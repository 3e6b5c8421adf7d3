# certprep/core/search_service.py
import asyncio
import logging
from typing import List, Optional

import httpx

from .config import config, Config
from .errors import SearchUnavailableError, SearchFailure, UpstreamTimeoutError
from .models import SearchResult

logger = logging.getLogger(__name__)


class SearchService:
    """Bing Web Search client for study guides and related content"""

    def __init__(self, settings: Config = None, client: Optional[httpx.AsyncClient] = None):
        self.settings = settings or config
        self._client = client
        self._owns_client = client is None

    @property
    def is_configured(self) -> bool:
        return bool(self.settings.BING_SEARCH_API_KEY)

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.settings.SEARCH_TIMEOUT)
        return self._client

    async def search(self, query: str, limit: int = 10) -> List[SearchResult]:
        """Ranked web page results for a query"""
        if not self.is_configured:
            raise SearchUnavailableError("Web search is not configured")

        try:
            response = await self._get_client().get(
                self.settings.BING_SEARCH_ENDPOINT,
                params={"q": query, "count": limit, "responseFilter": "Webpages"},
                headers={"Ocp-Apim-Subscription-Key": self.settings.BING_SEARCH_API_KEY}
            )
            response.raise_for_status()
            payload = response.json()
        except httpx.TimeoutException as e:
            logger.error(f"⏱️ Search timed out for '{query}': {e}")
            raise UpstreamTimeoutError(f"Search timed out for '{query}'")
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"❌ Search failed for '{query}': {e}")
            raise SearchFailure(f"Search failed: {e}")

        if not isinstance(payload, dict):
            logger.error(f"❌ Search returned a non-object body for '{query}'")
            raise SearchFailure("Search failed: unexpected response body")

        web_pages = payload.get("webPages") or {}
        pages = (web_pages.get("value") or []) if isinstance(web_pages, dict) else None
        if not isinstance(pages, list) or not all(isinstance(page, dict) for page in pages):
            logger.error(f"❌ Search returned malformed webPages for '{query}'")
            raise SearchFailure("Search failed: unexpected response body")

        results = [
            SearchResult(
                title=page.get("name") or "",
                url=page.get("url") or "",
                snippet=page.get("snippet") or ""
            )
            for page in pages
        ]
        return results[:limit]

    async def search_certification(self, query: str) -> List[SearchResult]:
        """Find study guides for a certification on the trusted domain"""
        search_query = f"site:{self.settings.SEARCH_TRUSTED_DOMAIN} {query} certification study guide"
        logger.info(f"🔍 Certification search: {search_query}")
        results = await self.search(search_query, self.settings.CERTIFICATION_RESULT_COUNT)
        logger.info(f"✅ Certification search returned {len(results)} results")
        return results

    async def search_related_content(self, queries: List[str], certification_name: str = "",
                                     topic_limit: int = None, per_topic: int = None,
                                     max_results: int = None) -> List[SearchResult]:
        """
        Search each topic query and merge the hits, de-duplicated by URL.

        A failing topic query stops the batch and the results gathered so far
        are returned; the batch itself never raises.
        """
        if topic_limit is None:
            topic_limit = self.settings.RELATED_TOPIC_LIMIT
        if per_topic is None:
            per_topic = self.settings.RELATED_RESULTS_PER_TOPIC
        if max_results is None:
            max_results = self.settings.RELATED_RESULTS_LIMIT

        collected: List[SearchResult] = []
        seen_urls = set()
        selected = queries[:topic_limit]

        for index, query in enumerate(selected):
            search_query = f"{query} {certification_name} certification".replace("  ", " ").strip()
            try:
                results = await self.search(search_query, per_topic)
            except Exception as e:
                logger.warning(f"⚠️ Related search stopped at '{query}': {e}; keeping {len(collected)} results")
                return collected

            for result in results:
                if result.url and result.url not in seen_urls:
                    seen_urls.add(result.url)
                    collected.append(result)
                    if len(collected) >= max_results:
                        return collected

            # Space out calls for the provider's rate limits
            if index < len(selected) - 1:
                await asyncio.sleep(self.settings.SEARCH_DELAY_SECONDS)

        logger.info(f"✅ Related search collected {len(collected)} results from {len(selected)} topics")
        return collected

    async def close(self):
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
