# WORKFLOW: Shared pytest fixtures for the fund ingestion test suite.
# Used by: Every test module under tests/
# Fixtures:
# 1. engine / session_factory / db - In-memory SQLite with the funds and brokerage_rates tables
# 2. make_workbook - Build XLSX bytes in memory with openpyxl from {sheet: rows}
# 3. FULL_HEADER / REDUCED_HEADER - Header rows as they appear in real exports
#
# Test flow: create tables -> run pipeline/index code against the session -> assert -> dispose

import io

import pytest
from openpyxl import Workbook
from sqlalchemy.orm import sessionmaker

from db.models import Base
from db.session import build_engine

FULL_HEADER = [
    "Scheme Name", "Launch Date", "Fund Size Apr25", "Fund Size May25", "Latest NAV",
    "7 Days", "14 Days", "21 Days", "1 Month", "3 Months", "6 Months", "YTD",
    "1 Year", "2 Years", "3 Years", "4 Years", "5 Years", "7 Years", "10 Years",
]
REDUCED_HEADER = [text for text in FULL_HEADER if text not in ("7 Days", "14 Days", "21 Days")]


@pytest.fixture
def engine():
    engine = build_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_workbook():
    """Return a function turning {sheet name: rows} into XLSX bytes."""

    def _make(sheets):
        workbook = Workbook()
        workbook.remove(workbook.active)
        for name, rows in sheets.items():
            worksheet = workbook.create_sheet(title=name)
            for row in rows:
                worksheet.append(list(row))
        buffer = io.BytesIO()
        workbook.save(buffer)
        return buffer.getvalue()

    return _make
