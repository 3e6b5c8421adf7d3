# certprep/core/content_extractor.py
import logging
import re
from typing import List, Optional

import httpx
from bs4 import BeautifulSoup, NavigableString

from .config import config, Config
from .errors import FetchError, EmptyContentError, UpstreamTimeoutError
from .models import ExtractedDocument, StructuredContent
from .utils import collapse_whitespace

logger = logging.getLogger(__name__)

# Markup that never carries study content
NON_CONTENT_TAGS = ["script", "style", "noscript", "nav", "footer", "header", "aside"]

# Most specific container first, whole document last
CONTENT_SELECTORS = [
    "main article",
    "article",
    ".content",
    "#main-content",
    "main",
    "body",
]

MIN_PARAGRAPH_LENGTH = 21

# Elements that end a line of text
BLOCK_TAGS = [
    "p", "div", "section", "article", "li", "ul", "ol", "br", "tr", "table",
    "pre", "blockquote", "dt", "dd", "h1", "h2", "h3", "h4", "h5", "h6",
]


class ContentExtractor:
    """Fetches study guide pages and turns them into plain text"""

    def __init__(self, settings: Config = None, client: Optional[httpx.AsyncClient] = None):
        self.settings = settings or config
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.settings.FETCH_TIMEOUT,
                follow_redirects=True,
                headers={"User-Agent": self.settings.FETCH_USER_AGENT}
            )
        return self._client

    async def fetch_html(self, url: str) -> str:
        """GET a page and return its HTML body"""
        try:
            response = await self._get_client().get(url)
        except httpx.TimeoutException as e:
            logger.error(f"⏱️ Timed out fetching {url}: {e}")
            raise UpstreamTimeoutError(f"Timed out fetching {url}")
        except httpx.HTTPError as e:
            logger.error(f"❌ Failed to fetch {url}: {e}")
            raise FetchError(f"Failed to fetch {url}: {e}", url=url)

        if not response.is_success:
            logger.error(f"❌ Fetch of {url} returned {response.status_code}")
            raise FetchError(
                f"Failed to fetch {url}: {response.status_code} {response.reason_phrase}",
                url=url,
                status=response.status_code
            )

        return response.text

    async def fetch(self, url: str) -> str:
        """Fetch a page and return its cleaned plain text"""
        document = await self.fetch_document(url)
        return document.text

    async def fetch_document(self, url: str) -> ExtractedDocument:
        """Fetch a page once and extract both plain text and structured fields"""
        logger.info(f"🌐 Fetching {url}")
        html = await self.fetch_html(url)

        text = self.extract_text(html)
        if len(text) < self.settings.MIN_CONTENT_LENGTH:
            logger.warning(f"Extracted only {len(text)} chars from {url}")
            raise EmptyContentError(
                f"No usable content at {url} ({len(text)} chars, need {self.settings.MIN_CONTENT_LENGTH})"
            )

        structured = self.extract_structured(html)
        logger.info(f"✅ Extracted {len(text)} chars, {len(structured.headings)} headings from {url}")
        return ExtractedDocument(url=url, text=text, structured=structured)

    def extract_text(self, html: str) -> str:
        """Strip non-content markup and return the first non-empty content region"""
        soup = BeautifulSoup(html, "html.parser")

        for tag in soup(NON_CONTENT_TAGS):
            tag.decompose()
        # Source line breaks are layout, not content
        for node in soup.find_all(string=True):
            if type(node) is NavigableString and "\n" in node:
                node.replace_with(NavigableString(node.replace("\n", " ")))
        for tag in soup(BLOCK_TAGS):
            tag.insert_after("\n")

        content = ""
        for selector in CONTENT_SELECTORS:
            element = soup.select_one(selector)
            if element is None:
                continue
            content = self.clean_text(element.get_text())
            if content:
                break

        if not content:
            content = self.clean_text(soup.get_text())

        return content

    @staticmethod
    def clean_text(text: str) -> str:
        """Collapse whitespace runs inside lines and blank-line runs between them"""
        text = re.sub(r"[ \t\f\v\r\u00a0]+", " ", text)
        lines = [line.strip() for line in text.split("\n")]
        text = "\n".join(lines)
        text = re.sub(r"\n{2,}", "\n", text)
        return text.strip()

    def extract_structured(self, html: str) -> StructuredContent:
        """Title, headings, paragraphs and list items of a page"""
        soup = BeautifulSoup(html, "html.parser")

        h1 = soup.find("h1")
        title = _element_text(h1)
        if not title and soup.title is not None:
            title = _element_text(soup.title)

        headings = _texts(soup.select("h1, h2, h3, h4, h5, h6"))
        paragraphs = [p for p in _texts(soup.find_all("p")) if len(p) >= MIN_PARAGRAPH_LENGTH]
        list_items = _texts(soup.select("ul li, ol li"))

        return StructuredContent(
            title=title,
            headings=headings,
            paragraphs=paragraphs,
            list_items=list_items
        )

    async def close(self):
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None


def _element_text(element) -> str:
    if element is None:
        return ""
    return collapse_whitespace(element.get_text(" "))


def _texts(elements) -> List[str]:
    texts = []
    for element in elements:
        text = _element_text(element)
        if text:
            texts.append(text)
    return texts
