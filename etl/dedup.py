# WORKFLOW: Cross-sheet deduplication of pooled fund records.
# Used by: Ingestion pipeline, after every sheet has been extracted
# Policies:
# 1. exact - any raw scheme name seen more than once is dropped entirely
# 2. canonical - first record per canonical name is kept, later ones dropped
#
# Both report how many records were removed so the caller can surface it.

"""
Cross-sheet deduplication of pooled fund records.
"""

import logging
from collections import Counter
from dataclasses import dataclass
from typing import List

from etl.records import FundRecord

logger = logging.getLogger(__name__)

EXACT = "exact"
CANONICAL = "canonical"


@dataclass
class DedupResult:
    records: List[FundRecord]
    removed: int


def dedupe_exact_names(records: List[FundRecord]) -> DedupResult:
    """Drop every occurrence of a raw scheme name that appears more than once."""
    counts = Counter(record.scheme_name for record in records)
    kept = []
    for record in records:
        count = counts[record.scheme_name]
        if count > 1:
            logger.debug(f"Removing duplicate scheme_name '{record.scheme_name}' (total count: {count})")
            continue
        kept.append(record)
    return DedupResult(records=kept, removed=len(records) - len(kept))


def dedupe_canonical_first_seen(records: List[FundRecord]) -> DedupResult:
    """Keep the first record seen for each canonical name."""
    seen = set()
    kept = []
    for record in records:
        key = record.canonical_name
        if key in seen:
            logger.debug(f"Dropping repeat of '{key}' from '{record.category}'")
            continue
        seen.add(key)
        kept.append(record)
    return DedupResult(records=kept, removed=len(records) - len(kept))


def dedupe(records: List[FundRecord], policy: str = CANONICAL) -> DedupResult:
    if policy == EXACT:
        result = dedupe_exact_names(records)
    elif policy == CANONICAL:
        result = dedupe_canonical_first_seen(records)
    else:
        raise ValueError(f"Unknown dedup policy: {policy}")
    logger.info(f"Deduplication ({policy}): kept {len(result.records)}, removed {result.removed}")
    return result
