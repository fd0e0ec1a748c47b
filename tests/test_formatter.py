"""
Unit tests for local answer composition.
"""

import pytest

from formatter import (
    classify_query,
    clean_snippet,
    compose_answer,
    extract_key_facts,
    format_search_context,
    format_sources,
)
from models import QueryIntent, SearchResult


def _result(position, snippet, title=None):
    return SearchResult(
        title=title or f"Result {position}",
        url=f"https://example.org/{position}",
        snippet=snippet,
        position=position,
    )


@pytest.mark.parametrize(
    "query, intent",
    [
        ("What is photosynthesis", QueryIntent.DEFINITION),
        ("what are black holes?", QueryIntent.DEFINITION),
        ("How to bake bread", QueryIntent.HOWTO),
        ("Python vs Rust", QueryIntent.COMPARISON),
        ("Explain quantum tunnelling", QueryIntent.EXPLANATION),
        ("Why is the sky blue", QueryIntent.EXPLANATION),
        ("History of the printing press", QueryIntent.HISTORICAL),
        ("Latest AI news", QueryIntent.NEWS),
        ("Benefits of meditation", QueryIntent.BENEFITS),
        ("Drawbacks of nuclear power", QueryIntent.DRAWBACKS),
        ("Tell me about turtles", QueryIntent.GENERAL),
        ("", QueryIntent.GENERAL),
    ],
)
def test_classify_query(query, intent):
    assert classify_query(query) == intent


def test_extract_key_facts_collects_years_percentages_and_units():
    results = [
        _result(1, "Founded in 1998, the company grew 45% in revenue."),
        _result(2, "The tower is 330 m tall and was finished in 1998."),
    ]

    facts = extract_key_facts(results)

    assert "1998" in facts
    assert "45%" in facts
    assert "330 m" in facts
    assert facts.count("1998") == 1


def test_extract_key_facts_respects_limit():
    results = [_result(1, "1901 1902 1903 1904 1905 1906 1907 1908")]
    assert len(extract_key_facts(results, limit=3)) == 3


def test_clean_snippet_strips_boilerplate():
    text = "Jan 5, 2024 — Plants convert light into energy. Read more..."
    assert clean_snippet(text) == "Plants convert light into energy."


def test_compose_answer_definition_layout():
    results = [
        _result(1, "Photosynthesis converts light energy into chemical energy. Learn more", "Photosynthesis - Wiki"),
        _result(2, "It produces about 50% of the oxygen on Earth."),
    ]

    answer = compose_answer("What is photosynthesis?", results)

    assert answer.startswith("## 📖 Definition: What is photosynthesis")
    assert "### 📊 Key Information\n• 50%" in answer
    assert "• Photosynthesis converts light energy into chemical energy." in answer
    assert "1. [Photosynthesis - Wiki](https://example.org/1)" in answer
    assert "2. [Result 2](https://example.org/2)" in answer


def test_compose_answer_without_results():
    answer = compose_answer("Tell me about turtles", [])
    assert answer.startswith("## 🔎 Overview: Tell me about turtles")
    assert "Sources" not in answer
    assert "Key Information" not in answer


def test_compose_answer_is_deterministic():
    results = [_result(1, "Some text from 2020.")]
    assert compose_answer("How to code", results) == compose_answer("How to code", results)


def test_format_sources_truncates_long_snippets():
    footer = format_sources([_result(1, "x" * 200)])
    assert footer.startswith("\n\n---\n\n**🔗 Sources:**\n[1] [Result 1](https://example.org/1) - ")
    assert footer.endswith("x" * 120 + "...")
    assert format_sources([]) == ""


def test_format_search_context():
    context = format_search_context([_result(1, "snippet"), _result(2, "")])
    assert context == (
        "[1] Result 1\nsnippet\nSource: https://example.org/1\n\n"
        "[2] Result 2\nSource: https://example.org/2"
    )
