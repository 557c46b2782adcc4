"""
Text analysis helpers for the response scorer.

Plain word-list heuristics: tokenisation, sentence splitting and
detection of action verbs, impact signals, STAR components and
confidence markers.
"""

import re

WORD_PATTERN = re.compile(r"[a-z0-9][a-z0-9'\-]*")
SENTENCE_SPLIT = re.compile(r"[.!?]+")

PERCENT_PATTERN = re.compile(r"\d+(?:\.\d+)?\s*(?:%|percent\b)")
CURRENCY_PATTERN = re.compile(r"[$€£]\s?\d|\d+(?:\.\d+)?\s*(?:k|m|million|thousand|billion)?\s*(?:dollars|usd|eur)\b")
QUANTITY_PATTERN = re.compile(
    r"\b\d[\d,]*(?:\.\d+)?\s*(?:x\b|times\b|users|customers|clients|people|engineers|"
    r"hours|days|weeks|months|requests|tickets|million|thousand)"
)

STOP_WORDS = {
    "a", "an", "and", "are", "as", "at", "be", "but", "by", "can", "could",
    "did", "do", "does", "for", "from", "had", "has", "have", "how", "i",
    "if", "in", "into", "is", "it", "its", "me", "my", "of", "on", "or",
    "our", "so", "that", "the", "their", "them", "then", "there", "these",
    "they", "this", "those", "to", "was", "we", "were", "what", "when",
    "where", "which", "while", "who", "why", "will", "with", "would", "you",
    "your", "about", "after", "again", "also", "been", "being", "each",
    "more", "most", "other", "over", "some", "such", "than", "very",
    # Interview prompt boilerplate
    "tell", "describe", "explain", "give", "walk", "through", "time",
    "example", "situation", "share", "think",
}

ACTION_VERBS = [
    "implemented", "developed", "designed", "built", "created", "led",
    "managed", "optimized", "architected", "deployed", "automated",
    "solved", "resolved", "identified", "analyzed", "investigated",
    "diagnosed", "improved", "streamlined", "launched", "delivered",
    "coordinated", "organized", "negotiated", "mentored", "refactored",
    "migrated", "established", "initiated", "drove",
]

IMPACT_WORDS = [
    "increased", "decreased", "reduced", "improved", "achieved",
    "saved", "generated", "accelerated", "boosted", "cut", "grew",
    "doubled", "tripled", "eliminated",
]

TECHNICAL_TERMS = [
    "api", "architecture", "algorithm", "cache", "caching", "database",
    "latency", "throughput", "scalability", "scalable", "framework",
    "deployment", "pipeline", "query", "index", "microservice",
    "microservices", "concurrency", "testing", "monitoring", "sql",
    "python", "java", "cloud", "kubernetes", "docker", "performance",
    "distributed", "replication", "consistency", "queue", "load",
]

TRANSITION_WORDS = [
    "however", "therefore", "furthermore", "additionally", "first",
    "second", "finally", "also", "then", "next", "because", "as a result",
]

EXAMPLE_PHRASES = [
    "for example", "for instance", "such as", "like when", "in my experience",
    "in my previous role", "at my last job",
]

INSIGHT_PHRASES = [
    "learned", "realized", "because", "trade-off", "tradeoff", "in hindsight",
    "next time", "lesson", "the reason", "root cause",
]

STAR_KEYWORDS: dict[str, list[str]] = {
    "situation": [
        "faced", "encountered", "situation", "challenge", "problem", "context",
        "issue", "struggling", "previous role", "last job", "last year",
    ],
    "task": [
        "responsible", "tasked", "needed", "required", "goal", "objective",
        "assigned", "had to", "my role", "my job",
    ],
    "action": ["did", "took", "action", "approach", "decided"] + ACTION_VERBS,
    "result": ["result", "outcome", "accomplished", "impact", "success", "ended up"] + IMPACT_WORDS,
}

STAR_WEIGHTS: dict[str, int] = {"situation": 25, "task": 20, "action": 30, "result": 25}

CONFIDENCE_MARKERS = ["confident", "believe", "know", "definitely", "certainly"]
UNCERTAINTY_MARKERS = ["maybe", "perhaps", "possibly", "guess", "i think", "not sure"]

FILLER_WORDS = ["um", "uh", "like", "basically", "actually", "literally", "you know", "kind of", "sort of"]

STEM_SUFFIXES = ("ations", "ation", "ings", "ing", "ions", "ion", "ies", "ed", "es", "s", "e", "y")


def tokenize(text: str) -> list[str]:
    return WORD_PATTERN.findall(text.lower())


def word_count(text: str) -> int:
    return len(text.split())


def sentences(text: str) -> list[str]:
    return [s.strip() for s in SENTENCE_SPLIT.split(text) if s.strip()]


def content_tokens(text: str) -> list[str]:
    """Distinct tokens longer than three characters that are not stop words."""
    seen: list[str] = []
    for token in tokenize(text):
        if len(token) > 3 and token not in STOP_WORDS and token not in seen:
            seen.append(token)
    return seen


def contains_phrase(text_lower: str, phrase: str) -> bool:
    """Whole-word (or whole-phrase) containment."""
    return re.search(rf"(?<![a-z]){re.escape(phrase)}(?![a-z])", text_lower) is not None


def find_phrases(text: str, phrases: list[str]) -> list[str]:
    lowered = text.lower()
    return [p for p in phrases if contains_phrase(lowered, p)]


def impact_signals(text: str) -> list[str]:
    """Distinct quantifiable-impact signals: percent, currency, counts, impact verbs."""
    lowered = text.lower()
    signals = []
    if PERCENT_PATTERN.search(lowered):
        signals.append("percentage")
    if CURRENCY_PATTERN.search(lowered):
        signals.append("currency")
    if QUANTITY_PATTERN.search(lowered):
        signals.append("quantity")
    signals.extend(find_phrases(lowered, IMPACT_WORDS))
    return signals


def star_components(text: str) -> dict[str, bool]:
    lowered = text.lower()
    return {
        component: any(contains_phrase(lowered, word) for word in words)
        for component, words in STAR_KEYWORDS.items()
    }


def star_score(components: dict[str, bool]) -> int:
    return sum(STAR_WEIGHTS[name] for name, present in components.items() if present)


def count_fillers(text: str) -> int:
    lowered = text.lower()
    return sum(
        len(re.findall(rf"(?<![a-z]){re.escape(filler)}(?![a-z])", lowered))
        for filler in FILLER_WORDS
    )


def stem(word: str) -> str:
    """Strip one common inflectional suffix, keeping at least four characters."""
    for suffix in STEM_SUFFIXES:
        if word.endswith(suffix) and len(word) - len(suffix) >= 4:
            return word[: -len(suffix)]
    return word


def _near_match(word: str, text_stems: set[str]) -> bool:
    word_stem = stem(word)
    if len(word_stem) < 5:
        return word_stem in text_stems
    return any(
        s == word_stem or (len(s) >= 5 and (s.startswith(word_stem) or word_stem.startswith(s)))
        for s in text_stems
    )


def element_covered(text_lower: str, element: str) -> bool:
    """
    Whether an expected element is addressed by the response.

    STAR component names (situation, task, action, result) are resolved
    through the STAR keyword lists. Any other element is covered by a
    verbatim match, or when one of its words longer than three characters
    appears in the text as-is or in an inflected form ("invalidation"
    against "invalidate", "metrics" against "metric").
    """
    element_lower = element.lower().strip()
    if element_lower in STAR_KEYWORDS:
        return star_components(text_lower)[element_lower]
    if element_lower and element_lower in text_lower:
        return True
    text_stems = {stem(token) for token in tokenize(text_lower)}
    return any(
        len(word) > 3 and (word in text_lower or _near_match(word, text_stems))
        for word in tokenize(element_lower)
    )


def estimate_confidence(text: str) -> float:
    lowered = text.lower()
    confident = sum(1 for m in CONFIDENCE_MARKERS if contains_phrase(lowered, m))
    uncertain = sum(1 for m in UNCERTAINTY_MARKERS if contains_phrase(lowered, m))
    return float(min(100, max(20, 70 + confident * 10 - uncertain * 8)))
