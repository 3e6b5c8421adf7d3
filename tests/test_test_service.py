# Test assembly, enrichment and submission orchestration.
import asyncio
import os

import httpx
import pytest

from certprep.core.content_analyzer import ContentAnalyzer
from certprep.core.content_extractor import ContentExtractor
from certprep.core.errors import (
    CompletionError, EmptyContentError, MalformedGenerationError, NotFoundError, SearchUnavailableError
)
from certprep.core.models import QuestionKind, SearchResult
from certprep.core.question_generator import QuestionGenerator
from certprep.core.search_service import SearchService
from certprep.services.test_service import TestService

from conftest import (
    STUDY_GUIDE_HTML, STUDY_GUIDE_URL, html_handler, mock_client,
    multi_answer_records, reply_for, single_answer_records
)


def stored_test_files(settings):
    return [name for name in os.listdir(settings.DATA_DIR) if name.endswith(".json")]


# 10 requested questions become 6 single-answer plus 4 multi-answer, persisted under a fresh id.
def test_generate_test_assembles_and_persists(test_service, fake_ai, repository):
    fake_ai.replies = [reply_for(single_answer_records(6)), reply_for(multi_answer_records(4))]

    test = asyncio.run(test_service.generate_test(STUDY_GUIDE_URL, "AZ-900", 10))

    assert test.question_count == 10
    assert test.certification_name == "AZ-900"
    assert test.source_locator == STUDY_GUIDE_URL
    assert len({q.id for q in test.questions}) == 10
    kinds = [q.kind for q in test.questions]
    assert kinds.count(QuestionKind.SINGLE_ANSWER) == 6
    assert kinds.count(QuestionKind.MULTI_ANSWER) == 4
    assert repository.load(test.id) == test


def test_generated_test_ids_are_unique(test_service, fake_ai):
    fake_ai.replies = [
        reply_for(single_answer_records(1)), reply_for(multi_answer_records(1)),
        reply_for(single_answer_records(1)), reply_for(multi_answer_records(1)),
    ]
    first = asyncio.run(test_service.generate_test(STUDY_GUIDE_URL, "AZ-900", 2))
    second = asyncio.run(test_service.generate_test(STUDY_GUIDE_URL, "AZ-900", 2))

    assert first.id != second.id


# A reply with no JSON array aborts generation and nothing is stored.
def test_malformed_reply_persists_nothing(test_service, fake_ai, settings):
    fake_ai.replies = ["Sorry, I can't do that right now."]

    with pytest.raises(MalformedGenerationError):
        asyncio.run(test_service.generate_test(STUDY_GUIDE_URL, "AZ-900", 10))

    assert stored_test_files(settings) == []


def test_completion_failure_propagates_unchanged(test_service, fake_ai, settings):
    fake_ai.replies = [CompletionError("provider down")]

    with pytest.raises(CompletionError, match="provider down"):
        asyncio.run(test_service.generate_test(STUDY_GUIDE_URL, "AZ-900", 10))

    assert stored_test_files(settings) == []


def test_empty_study_guide_never_reaches_generation(settings, fake_ai, repository):
    pages = {STUDY_GUIDE_URL: "<html><body><p>Soon.</p></body></html>"}
    service = TestService(
        extractor=ContentExtractor(settings, client=mock_client(html_handler(pages))),
        analyzer=ContentAnalyzer(),
        search_service=None,
        generator=QuestionGenerator(fake_ai, settings),
        repository=repository,
        settings=settings
    )

    with pytest.raises(EmptyContentError):
        asyncio.run(service.generate_test(STUDY_GUIDE_URL, "AZ-900", 10))
    assert fake_ai.calls == []


def build_enriched_service(settings, fake_ai, repository, related_pages):
    """Service with search configured; related pages served by a mock transport"""
    settings.BING_SEARCH_API_KEY = "bing-key"

    def search_handler(request):
        return httpx.Response(200, json={"webPages": {"value": [
            {"name": f"Related {i}", "url": url, "snippet": f"Snippet {i}"}
            for i, url in enumerate(related_pages)
        ]}})

    pages = {STUDY_GUIDE_URL: STUDY_GUIDE_HTML}
    pages.update({url: html for url, html in related_pages.items() if html is not None})

    return TestService(
        extractor=ContentExtractor(settings, client=mock_client(html_handler(pages))),
        analyzer=ContentAnalyzer(),
        search_service=SearchService(settings, client=mock_client(search_handler)),
        generator=QuestionGenerator(fake_ai, settings),
        repository=repository,
        settings=settings
    )


# A related page that fails to load is kept as its snippet; the others contribute full text.
def test_enrichment_failure_falls_back_to_snippet(settings, fake_ai, repository):
    good_page = "<html><body><main><p>" + "Availability zones protect applications. " * 10 + "</p></main></body></html>"
    service = build_enriched_service(settings, fake_ai, repository, {
        "https://docs.example/zones": good_page,
        "https://docs.example/broken": None,
    })
    fake_ai.replies = [reply_for(single_answer_records(6)), reply_for(multi_answer_records(4))]

    test = asyncio.run(service.generate_test(STUDY_GUIDE_URL, "AZ-900", 10))

    assert test.question_count == 10
    prompt = fake_ai.calls[0]
    assert "ADDITIONAL WEB CONTENT:" in prompt
    assert "Availability zones protect applications." in prompt
    assert "Snippet 1" in prompt


def test_fetch_related_documents_reports_per_item_outcomes(settings, fake_ai, repository):
    service = build_enriched_service(settings, fake_ai, repository, {
        "https://docs.example/zones": "<html><body><p>" + "Zone redundancy. " * 30 + "</p></body></html>",
        "https://docs.example/broken": None,
    })
    results = [
        SearchResult("Zones", "https://docs.example/zones", "zones snippet"),
        SearchResult("Broken", "https://docs.example/broken", "broken snippet"),
    ]
    settings.ENRICHMENT_CONTENT_CHARS = 50

    outcomes = asyncio.run(service.fetch_related_documents(results))
    by_url = {o.document.url: o for o in outcomes}

    assert by_url["https://docs.example/zones"].ok
    assert len(by_url["https://docs.example/zones"].document.content) == 50
    assert not by_url["https://docs.example/broken"].ok
    assert by_url["https://docs.example/broken"].document.content is None
    assert by_url["https://docs.example/broken"].document.snippet == "broken snippet"


def test_enrichment_disabled_skips_search(settings, fake_ai, repository):
    service = build_enriched_service(settings, fake_ai, repository, {})
    settings.ENABLE_WEB_ENRICHMENT = False
    fake_ai.replies = [reply_for(single_answer_records(6)), reply_for(multi_answer_records(4))]

    asyncio.run(service.generate_test(STUDY_GUIDE_URL, "AZ-900", 10))

    assert "ADDITIONAL WEB CONTENT:" not in fake_ai.calls[0]


def test_search_certifications_unconfigured(test_service):
    with pytest.raises(SearchUnavailableError):
        asyncio.run(test_service.search_certifications("AZ-900"))


def test_get_unknown_test_raises_not_found(test_service):
    with pytest.raises(NotFoundError):
        test_service.get_test("test-404")


# Submissions are scored and stored as a new session each time.
def test_submit_answers_scores_and_records_session(test_service, fake_ai, repository):
    fake_ai.replies = [reply_for(single_answer_records(6)), reply_for(multi_answer_records(4))]
    test = asyncio.run(test_service.generate_test(STUDY_GUIDE_URL, "AZ-900", 10))
    answers = {q.id: list(q.correct_answers) for q in test.questions[:5]}

    result = test_service.submit_answers(test.id, answers)

    assert result["score"]["total"] == 10
    assert result["score"]["correct"] == 5
    assert result["score"]["score"] == 50
    assert result["sessionId"].startswith(f"session-{test.id}-")
    assert result["answers"] == answers

    test_service.submit_answers(test.id, {})
    assert len(test_service.list_sessions(test.id)) == 2


def test_submit_answers_unknown_test(test_service):
    with pytest.raises(NotFoundError):
        test_service.submit_answers("test-404", {})


def test_health_check_reports_storage(test_service):
    health = test_service.health_check()
    assert health["status"] == "healthy"
    assert health["storage"]["backend"] == "file"
    assert health["search_enabled"] is False


# Container health is the test service's report plus the completion provider.
def test_container_health_delegates_to_test_service(services):
    health = services.health_check()
    assert health["status"] == "healthy"
    assert health["storage"]["backend"] == "file"
    assert health["ai_service"]["status"] == "healthy"


# A storage check that raises turns /health into a 503.
def test_health_endpoint_unhealthy_when_storage_check_fails(client, repository, monkeypatch):
    def broken():
        raise OSError("disk unavailable")

    monkeypatch.setattr(repository, "validate_connection", broken)
    response = client.get("/health")

    assert response.status_code == 503
    assert response.json()["error"] == "disk unavailable"
