"""Deterministic criticality scoring and categorization.

Scores are integers 1-10:
- the highest severity among matched keywords (not a sum), 3 when nothing matches
- plus a signed modifier per assigned category
- clamped to [1, 10]

Matching is plain case-insensitive substring search, so short keywords such as
"apt" or "rce" also hit inside longer words.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Iterable, List, Mapping, Tuple

MIN_SCORE = 1
MAX_SCORE = 10
DEFAULT_SCORE = 3
DEFAULT_CATEGORY = "vulnerability"

KEYWORD_SEVERITY: Mapping[str, int] = MappingProxyType(
    {
        "ransomware": 10,
        "zero-day": 10,
        "zero day": 10,
        "data breach": 9,
        "apt": 9,
        "advanced persistent threat": 9,
        "exploit": 8,
        "remote code execution": 8,
        "rce": 8,
        "backdoor": 8,
        "credential": 7,
        "stolen data": 7,
        "vulnerability": 6,
        "malware": 6,
        "trojan": 6,
        "phishing": 5,
        "botnet": 5,
        "suspicious": 4,
        "attack": 4,
        "compromise": 4,
        "threat": 3,
        "risk": 3,
    }
)

CATEGORY_MODIFIERS: Mapping[str, int] = MappingProxyType(
    {
        "ransomware": 2,
        "data-leak": 2,
        "exploit": 1,
        "malware": 1,
        "vulnerability": 0,
        "phishing": -1,
    }
)

# Checked in this order; the output keeps it.
CATEGORY_INDICATORS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("ransomware", ("ransomware", "ransom", "encrypt")),
    ("data-leak", ("data breach", "leak", "stolen data", "database dump")),
    ("malware", ("malware", "trojan", "virus", "backdoor")),
    ("vulnerability", ("vulnerability", "cve", "zero-day", "zero day")),
    ("exploit", ("exploit", "rce", "remote code execution")),
    ("phishing", ("phishing", "phish", "social engineering")),
)


def keyword_score(content: str) -> int:
    text = (content or "").lower()
    best = 0
    for keyword, severity in KEYWORD_SEVERITY.items():
        if keyword in text and severity > best:
            best = severity
    return best or DEFAULT_SCORE


def score_criticality(content: str, categories: Iterable[str] = ()) -> int:
    score = keyword_score(content)
    for category in categories:
        score += CATEGORY_MODIFIERS.get(category, 0)
    return max(MIN_SCORE, min(MAX_SCORE, score))


def auto_categorize(content: str) -> List[str]:
    text = (content or "").lower()
    categories = [name for name, needles in CATEGORY_INDICATORS if any(n in text for n in needles)]
    return categories or [DEFAULT_CATEGORY]
