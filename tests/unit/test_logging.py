"""Unit tests for export logging helpers."""

import logging

import pytest

from app.utils.logging import log_banner, new_request_id, step_timer


def test_request_ids_are_short_and_unique():
    ids = {new_request_id() for _ in range(50)}
    assert len(ids) == 50
    assert all(len(i) == 12 and int(i, 16) >= 0 for i in ids)


class TestStepTimer:
    def test_finished_line_carries_request_id(self, caplog):
        with caplog.at_level(logging.INFO, logger="pagefit"):
            with step_timer("Assemble PDF", request_id="abc123"):
                pass
        messages = [r.getMessage() for r in caplog.records]
        assert messages[0] == "[abc123] ▶ Assemble PDF — started"
        assert messages[1].startswith("[abc123] ✔ Assemble PDF — finished in ")

    def test_failure_logged_and_reraised(self, caplog):
        with caplog.at_level(logging.INFO, logger="pagefit"):
            with pytest.raises(ValueError):
                with step_timer("Collect images"):
                    raise ValueError("boom")
        last = caplog.records[-1]
        assert last.levelno == logging.WARNING
        assert "✗ Collect images — failed after" in last.getMessage()
        assert "(ValueError)" in last.getMessage()
        assert not any("finished" in r.getMessage() for r in caplog.records)


def test_banner_framed_by_rules(caplog):
    with caplog.at_level(logging.INFO, logger="pagefit"):
        log_banner("Export starting (%d images)", 3, request_id="job1")
    messages = [r.getMessage() for r in caplog.records]
    assert messages == ["=" * 60, "[job1] Export starting (3 images)", "=" * 60]
