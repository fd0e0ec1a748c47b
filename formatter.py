"""
Local Markdown answer composition from search results.

Used when no AI completion provider is configured or every provider failed.
Pure text templating: no network or disk access.
"""

import re
from typing import Dict, List, Sequence, Tuple

from models import QueryIntent, SearchResult

# Checked in order; the first intent with a matching phrase wins.
INTENT_KEYWORDS: Tuple[Tuple[QueryIntent, Tuple[str, ...]], ...] = (
    (QueryIntent.COMPARISON, (" vs ", " vs. ", " versus ", "compare", "difference between")),
    (QueryIntent.HOWTO, ("how to ", "how do i ", "how can i ", "steps to ", "guide to ", "tutorial")),
    (QueryIntent.DEFINITION, ("what is ", "what are ", "what's ", "define ", "definition of", "meaning of")),
    (QueryIntent.EXPLANATION, (" why ", "explain", "how does ", "how do ", "how is ")),
    (QueryIntent.REVIEW, (" review", " best ", " worth ", " rating", " recommend")),
    (QueryIntent.HISTORICAL, ("history", " origin", "when was ", "who invented", " founded")),
    (QueryIntent.NEWS, (" news", " latest ", " recent ", " update", " today")),
    (QueryIntent.BENEFITS, (" benefit", " advantage", " pros ", " why use ")),
    (QueryIntent.DRAWBACKS, (" drawback", " disadvantage", " cons ", " risks", " downside")),
)

INTENT_TITLES: Dict[QueryIntent, str] = {
    QueryIntent.DEFINITION: "📖 Definition",
    QueryIntent.HOWTO: "🛠️ How-To Guide",
    QueryIntent.EXPLANATION: "💡 Explanation",
    QueryIntent.COMPARISON: "⚖️ Comparison",
    QueryIntent.REVIEW: "⭐ Review",
    QueryIntent.HISTORICAL: "📜 Historical Background",
    QueryIntent.NEWS: "📰 Latest News",
    QueryIntent.BENEFITS: "✅ Benefits",
    QueryIntent.DRAWBACKS: "⚠️ Drawbacks",
    QueryIntent.GENERAL: "🔎 Overview",
}

INTENT_INTROS: Dict[QueryIntent, str] = {
    QueryIntent.DEFINITION: "Here is what **{topic}** means, based on the sources I found.",
    QueryIntent.HOWTO: "Here is a practical walkthrough for **{topic}**.",
    QueryIntent.EXPLANATION: "Here is an explanation of **{topic}**.",
    QueryIntent.COMPARISON: "Here is how the options in **{topic}** compare.",
    QueryIntent.REVIEW: "Here is a summary of opinions on **{topic}**.",
    QueryIntent.HISTORICAL: "Here is the background behind **{topic}**.",
    QueryIntent.NEWS: "Here are the latest developments on **{topic}**.",
    QueryIntent.BENEFITS: "Here are the main benefits of **{topic}**.",
    QueryIntent.DRAWBACKS: "Here are the main drawbacks of **{topic}**.",
    QueryIntent.GENERAL: "Here is an overview of **{topic}**.",
}

INTENT_CLOSINGS: Dict[QueryIntent, str] = {
    QueryIntent.DEFINITION: "In short, the sources above agree on the core meaning; follow them for more depth.",
    QueryIntent.HOWTO: "Work through the steps in order and check the linked guides for details specific to your setup.",
    QueryIntent.EXPLANATION: "These points cover the main reasons; the sources go deeper into each of them.",
    QueryIntent.COMPARISON: "The right choice depends on your priorities, so weigh the differences above against your needs.",
    QueryIntent.REVIEW: "Opinions vary, so compare several reviews before deciding.",
    QueryIntent.HISTORICAL: "Dates and details can differ between accounts; the sources below give fuller context.",
    QueryIntent.NEWS: "News moves quickly, so check the sources for the most recent updates.",
    QueryIntent.BENEFITS: "Benefits depend on context, so consider how they apply to your situation.",
    QueryIntent.DRAWBACKS: "Knowing the downsides helps you decide whether the trade-offs are acceptable.",
    QueryIntent.GENERAL: "Let me know if you want more detail on any of these points.",
}

YEAR_RE = re.compile(r"\b(?:1[5-9]\d{2}|20\d{2})\b")
PERCENT_RE = re.compile(r"\b\d+(?:[.,]\d+)?\s?%")
MEASUREMENT_RE = re.compile(
    r"\b\d+(?:[.,]\d+)?\s?(?:km/h|mph|km|kg|mg|cm|mm|mi|m|lbs?|kWh|kW|GB|MB|TB|°C|°F|"
    r"hours?|minutes?|seconds?|days?|years?|meters?|miles?|grams?|liters?)\b",
    re.IGNORECASE,
)

BOILERPLATE_PATTERNS: Tuple[re.Pattern[str], ...] = (
    re.compile(r"^[A-Z][a-z]{2} \d{1,2}, \d{4}\s*[—–-]\s*"),
    re.compile(r"^\d+ (?:days?|hours?|minutes?) ago\s*[—–-]?\s*", re.IGNORECASE),
    re.compile(r"\b(?:read more|click here|learn more|see more)\b[.:!]*", re.IGNORECASE),
    re.compile(r"(?:\.{3}|…)\s*$"),
)

MAX_KEY_FACTS = 6
MAX_MAIN_POINTS = 3
SOURCE_SNIPPET_CHARS = 120


def classify_query(query: str) -> QueryIntent:
    padded = f" {(query or '').lower().strip()} "
    for intent, keywords in INTENT_KEYWORDS:
        if any(keyword in padded for keyword in keywords):
            return intent
    return QueryIntent.GENERAL


def extract_key_facts(results: Sequence[SearchResult], limit: int = MAX_KEY_FACTS) -> List[str]:
    """Years, percentages and measurements mentioned in snippets, in order of appearance."""
    facts: List[str] = []
    seen = set()
    for result in results:
        snippet = result.snippet or ""
        for pattern in (MEASUREMENT_RE, PERCENT_RE, YEAR_RE):
            for match in pattern.finditer(snippet):
                value = match.group(0).strip()
                key = value.lower()
                if key in seen:
                    continue
                seen.add(key)
                facts.append(value)
                if len(facts) >= limit:
                    return facts
    return facts


def clean_snippet(text: str) -> str:
    cleaned = (text or "").strip()
    for pattern in BOILERPLATE_PATTERNS:
        cleaned = pattern.sub("", cleaned).strip()
    cleaned = re.sub(r"\s{2,}", " ", cleaned)
    if cleaned and cleaned[-1] not in ".!?":
        cleaned += "."
    return cleaned


def _topic(query: str) -> str:
    return (query or "").strip().rstrip("?!. ") or "your question"


def format_search_context(results: Sequence[SearchResult]) -> str:
    """Plain-text context block for an AI prompt."""
    blocks = []
    for index, result in enumerate(results, start=1):
        snippet = f"{result.snippet}\n" if result.snippet else ""
        blocks.append(f"[{index}] {result.title}\n{snippet}Source: {result.url}")
    return "\n\n".join(blocks)


def format_sources(results: Sequence[SearchResult]) -> str:
    """Sources footer appended to AI generated answers."""
    if not results:
        return ""

    lines = []
    for index, result in enumerate(results, start=1):
        snippet = result.snippet or ""
        short = snippet[:SOURCE_SNIPPET_CHARS] + ("..." if len(snippet) > SOURCE_SNIPPET_CHARS else "")
        lines.append(f"[{index}] [{result.title}]({result.url}) - {short}")
    return "\n\n---\n\n**🔗 Sources:**\n" + "\n".join(lines)


def compose_answer(query: str, results: Sequence[SearchResult], max_results: int = 5) -> str:
    """Build a themed Markdown answer from the top search results."""
    intent = classify_query(query)
    topic = _topic(query)
    used = list(results)[:max_results]

    sections = [
        f"## {INTENT_TITLES[intent]}: {topic}",
        INTENT_INTROS[intent].format(topic=topic),
    ]

    facts = extract_key_facts(used)
    if facts:
        sections.append("### 📊 Key Information\n" + "\n".join(f"• {fact}" for fact in facts))

    points = [clean_snippet(r.snippet) for r in used if r.snippet]
    points = [point for point in points if point][:MAX_MAIN_POINTS]
    if points:
        sections.append("### 📌 Main Points\n" + "\n".join(f"• {point}" for point in points))

    sections.append(INTENT_CLOSINGS[intent])

    if used:
        sources = "\n".join(
            f"{index}. [{r.title}]({r.url})" for index, r in enumerate(used, start=1)
        )
        sections.append("### 🔗 Sources\n" + sources)

    return "\n\n".join(sections)
