"""Lexicon-based sentiment score for chat messages.

Terms are matched as plain substrings of the lower-cased text, so a term that
is part of a longer word also counts ("hope" inside "hopeful" adds twice).
"""

from __future__ import annotations

STEP = 0.1

POSITIVE_TERMS: tuple[str, ...] = (
    "good",
    "great",
    "happy",
    "better",
    "hope",
    "hopeful",
    "excited",
    "grateful",
    "thankful",
    "confident",
    "proud",
    "motivated",
    "strong",
    "calm",
    "love",
    "progress",
    "optimistic",
)

NEGATIVE_TERMS: tuple[str, ...] = (
    "sad",
    "lost",
    "alone",
    "lonely",
    "depressed",
    "anxious",
    "angry",
    "hopeless",
    "worthless",
    "scared",
    "afraid",
    "stuck",
    "hurt",
    "empty",
    "cut",
    "injured",
    "fail",
    "useless",
)


def score_sentiment(text: str) -> float:
    text = (text or "").lower()
    score = 0.0
    for term in POSITIVE_TERMS:
        if term in text:
            score += STEP
    for term in NEGATIVE_TERMS:
        if term in text:
            score -= STEP
    # Round away float drift (0.1 * 3 != 0.3).
    return round(max(-1.0, min(1.0, score)), 4)
