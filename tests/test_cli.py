from __future__ import annotations

import asyncio
from datetime import timedelta
import json
from pathlib import Path

import pytest

from lyricsweep import __main__ as cli
from lyricsweep.state.models import RetryEntry, RetryOutcome, RetryState
from lyricsweep.state.store import RetryStateStore
from tests.helpers import FIXED_NOW


@pytest.fixture
def cli_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    state_path = tmp_path / "state" / "retry-state.json"
    monkeypatch.setenv("LYRICS_STATE_PATH", str(state_path))
    monkeypatch.setenv("LYRICSWEEP_DATABASE_URL", f"sqlite:///{tmp_path / 'library.db'}")
    monkeypatch.setattr(cli, "configure_logging", lambda *args, **kwargs: None)
    return state_path


def _env_file(tmp_path: Path) -> str:
    return str(tmp_path / "missing.env")


def test_state_command_reports_entries_as_json(
    tmp_path: Path, cli_env: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    entry = RetryEntry(
        track_signature="sig",
        consecutive_no_result_count=1,
        next_retry_utc=FIXED_NOW + timedelta(days=1),
        last_attempt_utc=FIXED_NOW,
        last_outcome=RetryOutcome.NO_RESULT,
    )
    state = RetryState(cursor=12, entries={"a": entry, "b": entry})
    assert asyncio.run(RetryStateStore(cli_env).save(state))

    exit_code = cli.main(["--env-file", _env_file(tmp_path), "state", "--json"])
    payload = json.loads(capsys.readouterr().out)

    assert exit_code == cli.EX_OK
    assert payload == {
        "path": str(cli_env),
        "cursor": 12,
        "entries": 2,
        "outcomes": {"NoResult": 2},
    }


def test_state_command_without_file_prints_empty_state(
    tmp_path: Path, cli_env: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    exit_code = cli.main(["--env-file", _env_file(tmp_path), "state"])
    output = capsys.readouterr().out

    assert exit_code == cli.EX_OK
    assert "Cursor: 0" in output
    assert "Entries: 0" in output


def test_run_command_on_empty_catalog_prints_summary(
    tmp_path: Path, cli_env: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    exit_code = cli.main(["--env-file", _env_file(tmp_path), "run"])
    output = capsys.readouterr().out

    assert exit_code == cli.EX_OK
    assert output.startswith("Lyrics task complete.")
    assert not cli_env.exists()


def test_missing_command_is_rejected() -> None:
    with pytest.raises(SystemExit):
        cli.main([])
