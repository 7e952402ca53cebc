# WORKFLOW: In-memory search index joining stored funds with approved brokerage rates.
# Used by: Search and refresh endpoints, upload endpoint (refresh after ingest)
# Functions:
# 1. build_index() - funds LEFT JOIN eligible brokerage_rates on canonical name -> VirtualIndex
# 2. VirtualIndex.search() - exact canonical match first, then substring scan
# 3. IndexHolder - owns the served index; refresh() builds off-lock, swaps under lock
#
# Refresh flow: DB read -> pandas merge -> CombinedRecord tuple -> name->positions map -> swap
# Search flow: query -> canonicalize -> exact positions -> substring keys -> results
# Readers always work on one snapshot, so a search never mixes two builds.

"""
In-memory search index joining stored funds with approved brokerage rates.
"""

import logging
import threading
import uuid
from collections import defaultdict
from dataclasses import asdict, dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import pandas as pd
from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from db.models import BrokerageRate, Fund
from etl.layout import NUMERIC_FIELDS
from etl.names import canonicalize

logger = logging.getLogger(__name__)

RATE_COLUMNS = {
    "arn": "arn",
    "company": "company",
    "brokerage_type": "brokerage_type",
    "start_date": "rate_start_date",
    "end_date": "rate_end_date",
    "approved": "rate_approved",
    "year_1_base": "year_1_base",
    "year_2_base": "year_2_base",
    "year_3_base": "year_3_base",
    "year_4_onwards_base": "year_4_onwards_base",
}


@dataclass(frozen=True)
class CombinedRecord:
    """One stored fund with its matching brokerage terms, if any."""

    id: int
    category: str
    scheme_name: str
    canonical_name: str
    launch_date: Optional[str] = None
    fund_size_apr25: Optional[float] = None
    fund_size_may25: Optional[float] = None
    latest_nav: Optional[float] = None
    days_7: Optional[float] = None
    days_14: Optional[float] = None
    days_21: Optional[float] = None
    month_1: Optional[float] = None
    months_3: Optional[float] = None
    months_6: Optional[float] = None
    ytd: Optional[float] = None
    year_1: Optional[float] = None
    years_2: Optional[float] = None
    years_3: Optional[float] = None
    years_4: Optional[float] = None
    years_5: Optional[float] = None
    years_7: Optional[float] = None
    years_10: Optional[float] = None
    since_inception: Optional[float] = None
    extra_values: Tuple[Optional[float], ...] = field(default_factory=tuple)
    arn: Optional[str] = None
    company: Optional[str] = None
    brokerage_type: Optional[str] = None
    rate_start_date: Optional[date] = None
    rate_end_date: Optional[date] = None
    rate_approved: Optional[bool] = None
    year_1_base: Optional[float] = None
    year_2_base: Optional[float] = None
    year_3_base: Optional[float] = None
    year_4_onwards_base: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["extra_values"] = list(self.extra_values)
        return data


class VirtualIndex:
    """Immutable snapshot of combined records with a canonical-name lookup."""

    def __init__(self, records: Sequence[CombinedRecord] = ()):
        self.records: Tuple[CombinedRecord, ...] = tuple(records)
        positions: Dict[str, List[int]] = defaultdict(list)
        for position, record in enumerate(self.records):
            positions[record.canonical_name].append(position)
        # Insertion order of the keys is the substring scan order
        self._positions: Dict[str, Tuple[int, ...]] = {key: tuple(value) for key, value in positions.items()}
        self.build_id = uuid.uuid4().hex
        self.built_at = datetime.now(timezone.utc)

    def __len__(self) -> int:
        return len(self.records)

    @property
    def keys(self) -> List[str]:
        return list(self._positions)

    def positions(self, canonical_name: str) -> Tuple[int, ...]:
        return self._positions.get(canonical_name, ())

    def search(self, query: str, limit: int = 20, sort_substring_matches: bool = False) -> List[CombinedRecord]:
        """
        Search by scheme name.

        Exact canonical matches come first, up to ``limit``. Remaining slots are
        filled from keys containing the query key, one record per canonical
        name, in index order (or sorted by name when requested).
        """
        key = canonicalize(query)
        if not key or limit <= 0:
            return []

        results = [self.records[position] for position in self.positions(key)[:limit]]
        if len(results) >= limit:
            return results

        added = {key} if results else set()
        candidates = [candidate for candidate in self._positions if candidate != key and key in candidate]
        if sort_substring_matches:
            candidates.sort()

        for candidate in candidates:
            if candidate in added:
                continue
            results.append(self.records[self._positions[candidate][0]])
            added.add(candidate)
            if len(results) >= limit:
                break
        return results


def _clean_value(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return value
    if value is None or pd.isna(value):
        return None
    if isinstance(value, pd.Timestamp):
        return value.date()
    return value


def _frame_to_records(frame: pd.DataFrame) -> List[CombinedRecord]:
    records = []
    for row in frame.to_dict("records"):
        values = {name: _clean_value(value) for name, value in row.items()}
        values["id"] = int(values["id"])
        values["extra_values"] = tuple(values.get("extra_values") or ())
        if values.get("rate_approved") is not None:
            values["rate_approved"] = bool(values["rate_approved"])
        records.append(CombinedRecord(**values))
    return records


def build_index(db: Session, today: Optional[date] = None, grace_days: int = 0) -> VirtualIndex:
    """
    Build a fresh index from the database.

    Each fund joins at most one brokerage rate: approved, not expired as of
    ``today`` (minus ``grace_days``), matched on canonical name; when several
    qualify the one with the latest start date wins.

    Args:
        db: Database session
        today: Reference date for expiry, defaults to the current date
        grace_days: Days past end_date a rate still counts as current

    Returns:
        New VirtualIndex; nothing is swapped here
    """
    today = today or date.today()
    cutoff = today - timedelta(days=grace_days)
    conn = db.connection()

    fund_columns = ["id", "category", "scheme_name", "canonical_name", "launch_date", *NUMERIC_FIELDS, "extra_values"]
    funds = pd.read_sql(select(*[Fund.__table__.c[name] for name in fund_columns]).order_by(Fund.id), conn)

    rates = pd.read_sql(
        select(BrokerageRate.__table__).where(
            BrokerageRate.approved.is_(True),
            or_(BrokerageRate.end_date.is_(None), BrokerageRate.end_date >= cutoff),
        ),
        conn,
    )
    rates["canonical_name"] = rates["scheme_name"].astype(str).map(canonicalize).astype(object)
    rates = (
        rates.sort_values("start_date", ascending=False, na_position="last", kind="stable")
        .drop_duplicates(subset="canonical_name", keep="first")
        .rename(columns=RATE_COLUMNS)
    )
    rates = rates[["canonical_name", *RATE_COLUMNS.values()]]

    combined = funds.merge(rates, on="canonical_name", how="left", sort=False)
    records = _frame_to_records(combined)

    index = VirtualIndex(records)
    matched = int(combined["rate_approved"].notna().sum()) if not combined.empty else 0
    logger.info(f"Built search index {index.build_id}: {len(index)} funds, {matched} with brokerage terms")
    return index


class IndexHolder:
    """
    Owner of the served VirtualIndex.

    Readers grab the current snapshot without waiting on builds. Refreshes are
    serialized; the swap itself is the only step under the read lock.
    """

    def __init__(self, index: Optional[VirtualIndex] = None):
        self._index = index if index is not None else VirtualIndex()
        self._loaded = index is not None
        self._swap_lock = threading.Lock()
        self._refresh_lock = threading.Lock()

    @property
    def current(self) -> VirtualIndex:
        with self._swap_lock:
            return self._index

    @property
    def loaded(self) -> bool:
        """True once a built index has been served; the initial empty placeholder does not count."""
        with self._swap_lock:
            return self._loaded

    def swap(self, new_index: VirtualIndex) -> VirtualIndex:
        """Replace the served index; returns the one it replaced."""
        with self._swap_lock:
            old_index, self._index = self._index, new_index
            self._loaded = True
        return old_index

    def refresh(self, builder: Callable[[], VirtualIndex]) -> int:
        """
        Build a new index and swap it in.

        If the builder raises, the served index is left untouched and the
        error propagates.
        """
        with self._refresh_lock:
            try:
                new_index = builder()
            except Exception as e:
                logger.error(f"Index refresh failed, keeping current index: {e}")
                raise
            self.swap(new_index)
        logger.info(f"Swapped in search index {new_index.build_id} ({len(new_index)} records)")
        return len(new_index)

    def search(self, query: str, limit: int = 20, sort_substring_matches: bool = False) -> List[CombinedRecord]:
        return self.current.search(query, limit=limit, sort_substring_matches=sort_substring_matches)


def session_index_builder(session_factory: Callable[[], Session], grace_days: int = 0) -> Callable[[], VirtualIndex]:
    """Builder for IndexHolder.refresh() that opens and closes its own session."""

    def _build() -> VirtualIndex:
        db = session_factory()
        try:
            return build_index(db, grace_days=grace_days)
        finally:
            db.close()

    return _build
