# Shared fixtures: isolated settings, a scripted completion service and an app wired to fakes.
import json

import httpx
import pytest
from fastapi.testclient import TestClient

from certprep.core.config import Config
from certprep.core.content_analyzer import ContentAnalyzer
from certprep.core.content_extractor import ContentExtractor
from certprep.core.database import FileTestRepository
from certprep.core.question_generator import QuestionGenerator
from certprep.core.search_service import SearchService
from certprep.main import create_app
from certprep.services.container import ServiceContainer
from certprep.services.test_service import TestService

STUDY_GUIDE_URL = "https://learn.example/az-900"

STUDY_GUIDE_HTML = """
<html>
  <head><title>AZ-900 study guide</title><script>var tracking = 1;</script></head>
  <body>
    <nav>Home | Docs | Training</nav>
    <main>
      <h1>Azure Fundamentals</h1>
      <h2>Describe cloud concepts</h2>
      <p>Cloud computing is the delivery of computing services over the internet, including
      servers, storage, databases, networking, software, analytics and intelligence.</p>
      <h2>Describe Azure architecture and services</h2>
      <p>Azure regions are sets of datacenters deployed within a latency-defined perimeter and
      connected through a dedicated regional low-latency network.</p>
      <ul>
        <li>Describe the shared responsibility model</li>
        <li>Compare the consumption-based model with other cost models</li>
      </ul>
    </main>
    <footer>Privacy and cookies</footer>
  </body>
</html>
"""


class FakeAIService:
    """Completion service returning canned replies in call order"""

    def __init__(self, replies=None):
        self.replies = list(replies or [])
        self.calls = []

    async def complete(self, system_prompt, user_prompt):
        self.calls.append(user_prompt)
        if not self.replies:
            raise AssertionError("unexpected completion call")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply

    def health_check(self):
        return {"status": "healthy", "provider": "fake", "model": "fake"}

    def close(self):
        pass


def single_answer_records(count, prefix="Single"):
    return [
        {
            "question": f"{prefix} question {i}?",
            "options": [f"{prefix} {i} option {letter}" for letter in "ABCD"],
            "correctAnswer": i % 4,
            "explanation": f"Explanation for {prefix.lower()} question {i}",
        }
        for i in range(count)
    ]


def multi_answer_records(count, prefix="Multi"):
    return [
        {
            "question": f"{prefix} question {i}? (Select all that apply)",
            "options": [f"{prefix} {i} option {letter}" for letter in "ABCDE"],
            "correctAnswers": [0, 2],
            "explanation": f"Explanation for {prefix.lower()} question {i}",
        }
        for i in range(count)
    ]


def reply_for(records):
    return json.dumps(records)


def mock_client(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def html_handler(pages):
    """MockTransport handler serving {url: html}; unknown URLs get 404"""
    def handler(request):
        body = pages.get(str(request.url))
        if body is None:
            return httpx.Response(404, text="not found")
        return httpx.Response(200, text=body, headers={"content-type": "text/html"})
    return handler


@pytest.fixture
def settings(tmp_path):
    cfg = Config()
    cfg.COMPLETION_PROVIDER = "azure"
    cfg.AZURE_OPENAI_ENDPOINT = "https://example.openai.azure.com"
    cfg.AZURE_OPENAI_API_KEY = "test-key"
    cfg.BING_SEARCH_API_KEY = ""
    cfg.BING_SEARCH_ENDPOINT = "https://search.example/v7.0/search"
    cfg.SEARCH_DELAY_SECONDS = 0
    cfg.ENABLE_WEB_ENRICHMENT = True
    cfg.MIN_CONTENT_LENGTH = 200
    cfg.MAX_CORPUS_CHARS = 15000
    cfg.DEFAULT_QUESTION_COUNT = 40
    cfg.MAX_QUESTION_COUNT = 100
    cfg.SINGLE_ANSWER_RATIO = 0.6
    cfg.ENRICHMENT_FETCH_COUNT = 5
    cfg.ENRICHMENT_CONTENT_CHARS = 2000
    cfg.STORAGE_BACKEND = "file"
    cfg.DATA_DIR = tmp_path / "tests"
    return cfg


@pytest.fixture
def repository(settings):
    return FileTestRepository(settings.DATA_DIR)


@pytest.fixture
def fake_ai():
    return FakeAIService()


@pytest.fixture
def extractor(settings):
    return ContentExtractor(settings, client=mock_client(html_handler({STUDY_GUIDE_URL: STUDY_GUIDE_HTML})))


@pytest.fixture
def test_service(settings, extractor, fake_ai, repository):
    return TestService(
        extractor=extractor,
        analyzer=ContentAnalyzer(),
        search_service=SearchService(settings),
        generator=QuestionGenerator(fake_ai, settings),
        repository=repository,
        settings=settings
    )


@pytest.fixture
def services(settings, extractor, fake_ai, repository, test_service):
    return ServiceContainer(
        settings=settings,
        extractor=extractor,
        search_service=test_service.search_service,
        ai_service=fake_ai,
        repository=repository,
        test_service=test_service
    )


@pytest.fixture
def client(services):
    with TestClient(create_app(services)) as test_client:
        yield test_client
