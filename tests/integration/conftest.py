"""Shared fixtures for integration tests.

These tests use real infrastructure components (HttpProber, LogResultSink,
the config loader, the record providers) with mocked HTTP via respx.
"""

from __future__ import annotations

from pathlib import Path

import pytest
import respx

from linkaudit.infrastructure.config import AppConfig, load_config


@pytest.fixture()
def respx_mock() -> respx.MockRouter:
    """Explicit respx mock router for request interception."""
    with respx.mock(assert_all_called=False) as router:
        yield router


@pytest.fixture()
def audit_config(tmp_path: Path) -> AppConfig:
    """Config with fixed concurrency and no log file."""
    return load_config(
        cli_overrides={
            "max_concurrent": 4,
            "http_timeout_seconds": 1.0,
            "log_dir": None,
        }
    )


@pytest.fixture()
def links_csv(tmp_path: Path) -> Path:
    """Small CSV export mixing healthy, broken and malformed links."""
    path = tmp_path / "links.csv"
    path.write_text(
        "id,owner_id,name,url\n"
        "1,10,Syllabus,https://ok.example.com/syllabus\n"
        "2,10,Old reader,https://gone.example.com/reader\n"
        "3,11,Typo,htps//broken\n"
        "4,11,Down,https://down.example.com/\n"
        "5,12,Missing url,\n",
        encoding="utf-8",
    )
    return path
