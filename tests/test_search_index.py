# WORKFLOW: Search index tests - lookup order, brokerage join, atomic refresh.
# Scenarios:
# 1. Exact canonical matches first, then one substring match per canonical name
# 2. build_index() joins only approved, unexpired rates, latest start date first
# 3. A failed refresh keeps the served index
# 4. Searches during a slow refresh see only the old build, then only the new one

import threading
from datetime import date

import pytest

from db.models import BrokerageRate, Fund
from etl.names import canonicalize
from services.search_index import CombinedRecord, IndexHolder, VirtualIndex, build_index, session_index_builder


def _record(record_id, name, category="Equity"):
    return CombinedRecord(id=record_id, category=category, scheme_name=name, canonical_name=canonicalize(name))


def _index(*names, category="Equity"):
    return VirtualIndex([_record(i + 1, name, category) for i, name in enumerate(names)])


class TestVirtualIndex:
    def test_substring_query_finds_fund(self):
        index = _index("HDFC Equity Growth Fund", "Axis Bluechip Fund")

        results = index.search("HDFC Equity")

        assert [record.scheme_name for record in results] == ["HDFC Equity Growth Fund"]

    def test_exact_match_comes_first(self):
        index = _index("HDFC Equity Growth Fund Direct", "Alpha Fund", "HDFC Equity Growth Fund")

        results = index.search("hdfc equity growth fund")

        assert [record.id for record in results] == [3, 1]

    def test_query_is_canonicalized(self):
        index = _index("HDFC Equity Growth Fund")
        assert len(index.search("  HDFC  Equity   growth!! ")) == 1

    def test_substring_phase_adds_one_record_per_name(self):
        index = _index("ABC Fund", "ABC  Fund.", "ABC Growth Fund")

        substring = index.search("abc")
        exact = index.search("abc fund")

        assert [record.id for record in substring] == [1, 3]
        assert [record.id for record in exact] == [1, 2]

    def test_limit_is_respected(self):
        index = _index(*[f"Fund {i}" for i in range(10)])
        assert len(index.search("fund", limit=3)) == 3
        assert index.search("fund", limit=0) == []

    def test_empty_query_returns_nothing(self):
        assert _index("Alpha Fund").search("  !! ") == []

    def test_substring_order_follows_index_unless_sorted(self):
        index = _index("Zeta Fund", "Alpha Fund")

        assert [record.scheme_name for record in index.search("fund")] == ["Zeta Fund", "Alpha Fund"]
        sorted_results = index.search("fund", sort_substring_matches=True)
        assert [record.scheme_name for record in sorted_results] == ["Alpha Fund", "Zeta Fund"]

    def test_to_dict_serializes_extra_values_as_list(self):
        record = CombinedRecord(id=1, category="Equity", scheme_name="A", canonical_name="a", extra_values=(1.0, None))
        assert record.to_dict()["extra_values"] == [1.0, None]

    def test_built_at_is_timezone_aware(self):
        assert VirtualIndex().built_at.tzinfo is not None


def _add_fund(db, name, category="Equity"):
    fund = Fund(category=category, scheme_name=name, canonical_name=canonicalize(name), launch_date="2010-01-04", latest_nav=10.0)
    db.add(fund)
    return fund


def _add_rate(db, name, approved=True, start=None, end=None, arn="ARN-1", year_1_base=0.5):
    db.add(
        BrokerageRate(
            scheme_name=name,
            arn=arn,
            company="AMC",
            brokerage_type="trail",
            approved=approved,
            start_date=start,
            end_date=end,
            year_1_base=year_1_base,
        )
    )


class TestBuildIndex:
    today = date(2025, 6, 1)

    def test_funds_without_rates_have_empty_terms(self, db):
        _add_fund(db, "Alpha Fund")
        db.commit()

        index = build_index(db, today=self.today)

        assert len(index) == 1
        record = index.records[0]
        assert record.scheme_name == "Alpha Fund"
        assert record.latest_nav == 10.0
        assert record.arn is None
        assert record.rate_approved is None

    def test_only_approved_current_rates_join(self, db):
        _add_fund(db, "Alpha Fund")
        _add_fund(db, "Beta Fund")
        _add_fund(db, "Gamma Fund")
        _add_rate(db, "ALPHA FUND.", approved=True, end=date(2025, 12, 31), arn="ARN-A")
        _add_rate(db, "Beta Fund", approved=False, arn="ARN-B")
        _add_rate(db, "Gamma Fund", approved=True, end=date(2025, 1, 1), arn="ARN-G")
        db.commit()

        index = build_index(db, today=self.today)
        by_name = {record.scheme_name: record for record in index.records}

        assert by_name["Alpha Fund"].arn == "ARN-A"
        assert by_name["Alpha Fund"].rate_approved is True
        assert by_name["Alpha Fund"].rate_end_date == date(2025, 12, 31)
        assert by_name["Beta Fund"].arn is None
        assert by_name["Gamma Fund"].arn is None

    def test_grace_days_extend_expired_rates(self, db):
        _add_fund(db, "Gamma Fund")
        _add_rate(db, "Gamma Fund", end=date(2025, 5, 25), arn="ARN-G")
        db.commit()

        assert build_index(db, today=self.today).records[0].arn is None
        assert build_index(db, today=self.today, grace_days=7).records[0].arn == "ARN-G"

    def test_latest_start_date_wins(self, db):
        _add_fund(db, "Alpha Fund")
        _add_rate(db, "Alpha Fund", start=date(2024, 1, 1), arn="ARN-OLD", year_1_base=0.4)
        _add_rate(db, "Alpha Fund", start=date(2025, 4, 1), arn="ARN-NEW", year_1_base=0.6)
        db.commit()

        index = build_index(db, today=self.today)

        assert len(index) == 1
        assert index.records[0].arn == "ARN-NEW"
        assert index.records[0].year_1_base == 0.6
        assert index.records[0].rate_start_date == date(2025, 4, 1)

    def test_empty_database_builds_empty_index(self, db):
        index = build_index(db, today=self.today)
        assert len(index) == 0
        assert index.search("anything") == []

    def test_session_builder_reads_committed_funds(self, db, session_factory):
        _add_fund(db, "HDFC Equity Growth Fund")
        db.commit()

        holder = IndexHolder()
        assert holder.refresh(session_index_builder(session_factory)) == 1
        assert holder.search("HDFC Equity")[0].scheme_name == "HDFC Equity Growth Fund"


class TestIndexHolder:
    def test_swap_returns_previous_index(self):
        old = _index("Alpha Fund")
        holder = IndexHolder(old)
        new = _index("Beta Fund")

        assert holder.swap(new) is old
        assert holder.current is new

    def test_failed_build_keeps_current_index(self):
        old = _index("Alpha Fund")
        holder = IndexHolder(old)

        def failing_builder():
            raise RuntimeError("database unavailable")

        with pytest.raises(RuntimeError):
            holder.refresh(failing_builder)

        assert holder.current is old
        assert holder.search("alpha")[0].scheme_name == "Alpha Fund"

    def test_searches_during_refresh_never_mix_builds(self):
        names = [f"Fund {i}" for i in range(50)]
        holder = IndexHolder(_index(*names, category="old"))
        started = threading.Event()
        release = threading.Event()

        def slow_builder():
            started.set()
            release.wait(timeout=5)
            return _index(*names, category="new")

        refresher = threading.Thread(target=holder.refresh, args=(slow_builder,))
        refresher.start()
        assert started.wait(timeout=5)

        for _ in range(20):
            categories = {record.category for record in holder.search("fund", limit=50)}
            assert categories == {"old"}

        release.set()
        refresher.join(timeout=5)

        categories = {record.category for record in holder.search("fund", limit=50)}
        assert categories == {"new"}

    def test_loaded_only_after_successful_refresh(self):
        holder = IndexHolder()
        assert holder.loaded is False

        def failing_builder():
            raise RuntimeError("database unavailable")

        with pytest.raises(RuntimeError):
            holder.refresh(failing_builder)
        assert holder.loaded is False

        holder.refresh(lambda: _index("Alpha Fund"))
        assert holder.loaded is True
        assert IndexHolder(_index("Alpha Fund")).loaded is True
