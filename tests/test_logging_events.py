from __future__ import annotations

import logging

import pytest

from lyricsweep.logging_events import log_event


def test_log_event_attaches_flat_fields(caplog: pytest.LogCaptureFixture) -> None:
    logger = logging.getLogger("lyricsweep.test")

    with caplog.at_level(logging.INFO, logger="lyricsweep.test"):
        log_event(logger, "lyrics.run.start", total_count=3, cursor=1, run_cap=None)

    record = caplog.records[-1]
    assert record.getMessage() == "lyrics.run.start"
    assert record.event == "lyrics.run.start"
    assert record.total_count == 3
    assert record.run_cap is None


def test_log_event_honours_explicit_level(caplog: pytest.LogCaptureFixture) -> None:
    logger = logging.getLogger("lyricsweep.test")

    with caplog.at_level(logging.DEBUG, logger="lyricsweep.test"):
        log_event(logger, "lyrics.state.flush", level=logging.DEBUG, saved=True)

    assert caplog.records[-1].levelno == logging.DEBUG


def test_log_event_accepts_nested_meta(caplog: pytest.LogCaptureFixture) -> None:
    logger = logging.getLogger("lyricsweep.test")

    with caplog.at_level(logging.INFO, logger="lyricsweep.test"):
        log_event(logger, "lyrics.pager.stop", meta={"pages": [1, 2], "source": {"kind": "sql"}})

    assert caplog.records[-1].meta == {"pages": [1, 2], "source": {"kind": "sql"}}


@pytest.mark.parametrize(
    "event, fields, error",
    [
        ("", {}, ValueError),
        ("lyrics.run.start", {"items": [1, 2]}, TypeError),
        ("lyrics.run.start", {"meta": ["not", "a", "mapping"]}, TypeError),
        ("lyrics.run.start", {"meta": {1: "bad key"}}, TypeError),
    ],
)
def test_log_event_rejects_invalid_payloads(event: str, fields: dict, error: type[Exception]) -> None:
    with pytest.raises(error):
        log_event(logging.getLogger("lyricsweep.test"), event, **fields)
