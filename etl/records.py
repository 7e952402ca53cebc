# WORKFLOW: In-memory fund record between row extraction and persistence.
# Used by: Row extraction, dedup engine, persistence reconciler
# Types:
# 1. FundRecord - category, raw scheme name, launch date text, numeric fields, overflow values
#
# Record flow: extract_sheet() -> FundRecord -> dedupe() -> reconcile_records() -> funds row

"""
In-memory fund record produced by row extraction.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from etl.layout import NUMERIC_FIELDS
from etl.names import canonicalize


@dataclass
class FundRecord:
    category: str
    scheme_name: str
    launch_date: str
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
    extra_values: List[Optional[float]] = field(default_factory=list)

    @property
    def canonical_name(self) -> str:
        # Derived on every access so it always follows scheme_name
        return canonicalize(self.scheme_name)

    def numeric_values(self) -> Dict[str, Optional[float]]:
        return {name: getattr(self, name) for name in NUMERIC_FIELDS}

