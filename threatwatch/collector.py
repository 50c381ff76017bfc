"""One collection cycle: acquire → process → dedup → store.

Sources are visited once each, sequentially. A failing source or item is logged
and counted and never stops the cycle.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Protocol, Sequence

from threatwatch.ingestion.item_types import ScrapedItem, Source
from threatwatch.ingestion.router import SourceRouter
from threatwatch.scoring.processor import CandidateRecord, ContentProcessor

logger = logging.getLogger(__name__)


class ContentStore(Protocol):
    def exists_by_url(self, url: str) -> bool: ...

    def insert(self, item: CandidateRecord) -> str: ...


@dataclass(frozen=True)
class ItemOutcome:
    source_name: str
    url: str
    status: str  # inserted | duplicate | error | source_error
    title: Optional[str] = None
    score: Optional[int] = None
    error: Optional[str] = None


@dataclass
class CycleReport:
    success: int = 0
    errors: int = 0
    skipped: int = 0
    outcomes: List[ItemOutcome] = field(default_factory=list)


class Collector:
    def __init__(self, router: SourceRouter, store: ContentStore, processor: Optional[ContentProcessor] = None):
        self.router = router
        self.store = store
        self.processor = processor or ContentProcessor()

    def collect(self, sources: Sequence[Source]) -> CycleReport:
        report = CycleReport()
        for source in sources:
            logger.info(f"[collect] scraping source={source.name}")
            try:
                items = self.router.acquire(source)
            except Exception as e:
                logger.error(f"[collect] failed to scrape source={source.name} error={e}")
                report.errors += 1
                report.outcomes.append(ItemOutcome(source.name, source.url, "source_error", error=str(e)))
                continue

            logger.info(f"[collect] scraped source={source.name} items={len(items)}")
            for scraped in items:
                self._store_item(source, scraped, report)

        logger.info(f"[collect] cycle completed success={report.success} errors={report.errors} skipped={report.skipped}")
        return report

    def _already_stored(self, url: str) -> bool:
        # Fail open: a broken probe risks a duplicate rather than losing the item
        try:
            return self.store.exists_by_url(url)
        except Exception as e:
            logger.warning(f"[collect] dedup check failed url={url} error={e}")
            return False

    def _store_item(self, source: Source, scraped: ScrapedItem, report: CycleReport) -> None:
        record = self.processor.process(scraped)

        if self._already_stored(record.source_url):
            logger.debug(f"[collect] already stored url={record.source_url}")
            report.skipped += 1
            report.outcomes.append(
                ItemOutcome(source.name, record.source_url, "duplicate", title=record.title, score=record.criticality_score)
            )
            return

        try:
            self.store.insert(record)
        except Exception as e:
            logger.error(f"[collect] insert failed title={record.title!r} source={source.name} error={e}")
            report.errors += 1
            report.outcomes.append(
                ItemOutcome(
                    source.name, record.source_url, "error", title=record.title, score=record.criticality_score, error=str(e)
                )
            )
            return

        logger.info(f"[collect] inserted title={record.title!r} source={source.name} score={record.criticality_score}")
        report.success += 1
        report.outcomes.append(
            ItemOutcome(source.name, record.source_url, "inserted", title=record.title, score=record.criticality_score)
        )
