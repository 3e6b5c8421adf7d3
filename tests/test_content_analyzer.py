# Topic and concept heuristics used to drive related-content search.
from certprep.core.content_analyzer import (
    ContentAnalyzer, looks_like_heading, MAX_TOPICS, SUMMARY_CHARS
)
from certprep.core.models import StructuredContent


def test_headings_within_length_bounds_become_topics():
    structured = StructuredContent(
        headings=["Intro", "Describe cloud concepts", "x" * 100, "Describe Azure identity"]
    )
    analysis = ContentAnalyzer().analyze_content("", structured)

    # "Intro" is too short and the 100-char heading too long
    assert analysis.key_topics == ["Describe cloud concepts", "Describe Azure identity"]


def test_list_items_become_concepts():
    structured = StructuredContent(
        list_items=["Short", "Describe the shared responsibility model", "y" * 200]
    )
    analysis = ContentAnalyzer().analyze_content("", structured)
    assert analysis.concepts == ["Describe the shared responsibility model"]


# Short capitalized lines without sentence punctuation read as headings.
def test_heading_like_lines_from_plain_text():
    content = "\n".join([
        "Networking Fundamentals",
        "Virtual networks let Azure resources talk to each other securely.",
        "lowercase line is not a heading",
        "What is a region?",
        "Storage Account Types",
    ])
    topics = ContentAnalyzer().derive_topics(content)
    assert topics == ["Networking Fundamentals", "Storage Account Types"]


def test_looks_like_heading_rejects_long_lines():
    assert looks_like_heading("Compute Options")
    assert not looks_like_heading("Tiny")
    assert not looks_like_heading(" ".join(["Word"] * 15))


# Topics from headings and text are merged without repeats, in first-seen order.
def test_topics_are_deduplicated_and_capped():
    headings = [f"Objective domain {i}" for i in range(20)]
    content = "\n".join(["Objective domain 0", "Objective domain 1"])
    analysis = ContentAnalyzer().analyze_content(content, StructuredContent(headings=headings))

    assert len(analysis.key_topics) == MAX_TOPICS
    assert len(set(analysis.key_topics)) == MAX_TOPICS
    assert analysis.key_topics[0] == "Objective domain 0"


def test_summary_is_leading_text_whitespace_collapsed():
    content = "Line one\nLine   two\n" + "z" * 1000
    summary = ContentAnalyzer().analyze_content(content).summary

    assert summary.startswith("Line one Line two ")
    assert len(summary) <= SUMMARY_CHARS


def test_topics_to_queries_strips_punctuation_and_short_queries():
    queries = ContentAnalyzer.topics_to_queries([
        "Describe Azure (identity) & access",
        "A/B",
        "Cost-management tools",
    ])
    assert queries == ["Describe Azure identity access", "Cost management tools"]
