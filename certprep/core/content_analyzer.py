# certprep/core/content_analyzer.py
"""
Derives search-worthy topics and concepts from an extracted study guide.

Thresholds (character counts are inclusive bounds):
- headings of 6-99 chars are topic candidates
- list items of 11-199 chars are concept candidates
- free-text lines of 11-149 chars that start with a capital letter, do not
  end in sentence punctuation and have fewer than 15 words are topic
  candidates too
Results keep first-seen order, drop duplicates and are capped at
MAX_TOPICS / MAX_CONCEPTS.
"""

import logging
import re
from typing import List, Optional

from .models import ContentAnalysis, StructuredContent
from .utils import collapse_whitespace

logger = logging.getLogger(__name__)

HEADING_LENGTH = (6, 99)
LIST_ITEM_LENGTH = (11, 199)
LINE_LENGTH = (11, 149)
MAX_LINE_WORDS = 15
SENTENCE_ENDINGS = (".", "?", "!")

MAX_TOPICS = 15
MAX_CONCEPTS = 20
SUMMARY_CHARS = 500
MIN_QUERY_LENGTH = 6


def _within(text: str, bounds) -> bool:
    low, high = bounds
    return low <= len(text) <= high


def _unique(items: List[str]) -> List[str]:
    seen = set()
    result = []
    for item in items:
        if item not in seen:
            seen.add(item)
            result.append(item)
    return result


def looks_like_heading(line: str) -> bool:
    """Short capitalized line without sentence punctuation"""
    if not _within(line, LINE_LENGTH):
        return False
    if not line[0].isupper():
        return False
    if line.endswith(SENTENCE_ENDINGS):
        return False
    return len(line.split()) < MAX_LINE_WORDS


class ContentAnalyzer:
    """Finds key topics and concepts in study guide content"""

    def analyze_content(self, content: str,
                        structured: Optional[StructuredContent] = None) -> ContentAnalysis:
        key_topics = []
        concepts = []

        if structured is not None:
            key_topics.extend(h for h in structured.headings if _within(h, HEADING_LENGTH))
            # List items often carry the exam objectives
            concepts.extend(item for item in structured.list_items if _within(item, LIST_ITEM_LENGTH))

        for raw_line in content.split("\n"):
            line = raw_line.strip()
            if line and looks_like_heading(line):
                key_topics.append(line)

        analysis = ContentAnalysis(
            key_topics=_unique(key_topics)[:MAX_TOPICS],
            concepts=_unique(concepts)[:MAX_CONCEPTS],
            summary=collapse_whitespace(content[:SUMMARY_CHARS])
        )

        logger.info(f"🔎 Found {len(analysis.key_topics)} topics, {len(analysis.concepts)} concepts")
        return analysis

    def derive_topics(self, content: str,
                      structured: Optional[StructuredContent] = None) -> List[str]:
        return self.analyze_content(content, structured).key_topics

    @staticmethod
    def topics_to_queries(topics: List[str]) -> List[str]:
        """Punctuation-free search queries, short ones dropped"""
        queries = []
        for topic in topics:
            query = collapse_whitespace(re.sub(r"[^\w\s]", " ", topic))
            if len(query) >= MIN_QUERY_LENGTH:
                queries.append(query)
        return queries
