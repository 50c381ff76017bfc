"""Turns raw scraped text into a candidate record for storage."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Tuple

from threatwatch.ingestion.item_types import ScrapedItem
from threatwatch.scoring.criticality import auto_categorize, score_criticality
from threatwatch.scoring.titles import generate_title


@dataclass(frozen=True)
class CandidateRecord:
    title: str
    source_name: str
    source_url: str
    content: str
    published_at: datetime
    criticality_score: int
    categories: Tuple[str, ...] = field(default_factory=tuple)


class ContentProcessor:
    """Title, categories, then score.

    Categories are assigned first and feed the score's category modifiers, so a
    keyword like "ransomware" counts both as a keyword and through its category.
    """

    def process(self, item: ScrapedItem) -> CandidateRecord:
        title = generate_title(item.content) or item.source.name
        categories = tuple(auto_categorize(item.content))
        return CandidateRecord(
            title=title,
            source_name=item.source.name,
            source_url=item.source.url,
            content=item.content,
            published_at=item.published_at,
            criticality_score=score_criticality(item.content, categories),
            categories=categories,
        )
