from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Tuple

import pytest

from login_insights import cli
from login_insights.services import config_loader
from login_insights.services.event_source import EventSourceError


def _raw(event_id: int, user: str = "Username is: Dana@Example.com") -> Dict[str, Any]:
    return {
        "id": event_id,
        "DateTimeAndStuff": 0,
        "EVENT_0_ACTION": "Success",
        "user_Name": user,
        "target": "mail.example.com",
        "ips": ["198.51.100.7"],
    }


class _DummySource:
    def __init__(self, raw_events: List[Dict[str, Any]], fail: bool = False):
        self.raw_events = raw_events
        self.fail = fail
        self.page_calls: List[Tuple[int, int]] = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return None

    async def fetch_event_count(self) -> int:
        if self.fail:
            raise EventSourceError("connection refused")
        return len(self.raw_events)

    async def fetch_event_page(self, start: int, end: int) -> List[Dict[str, Any]]:
        self.page_calls.append((start, end))
        return self.raw_events[start - 1:end]


def test_normalize_command_writes_artifact(tmp_path: Path):
    input_path = tmp_path / "raw.json"
    output_path = tmp_path / "normalized.json"
    input_path.write_text(json.dumps([_raw(1), _raw(2)]), encoding="utf-8")

    code = cli.main(["normalize", str(input_path), "-o", str(output_path)])

    assert code == 0
    payload = json.loads(output_path.read_text(encoding="utf-8"))
    assert payload[0] == {
        "id": 1,
        "userName": "dana@example.com",
        "sourceIp": "198.51.100.7",
        "target": "mail.example.com",
        "action": "Logon-Success",
        "eventTime": "Thu, 01 Jan 1970 00:00:00 GMT",
    }


def test_normalize_command_prints_to_stdout(tmp_path: Path, capsys):
    input_path = tmp_path / "raw.json"
    input_path.write_text(json.dumps([_raw(1)]), encoding="utf-8")

    assert cli.main(["normalize", str(input_path)]) == 0
    assert json.loads(capsys.readouterr().out)[0]["id"] == 1


def test_normalize_command_rejects_malformed_records(tmp_path: Path):
    bad = _raw(2)
    bad["ips"] = []
    input_path = tmp_path / "raw.json"
    input_path.write_text(json.dumps([_raw(1), bad]), encoding="utf-8")

    assert cli.main(["normalize", str(input_path)]) == cli.EXIT_MALFORMED_DATA


def test_normalize_command_rejects_non_array(tmp_path: Path):
    input_path = tmp_path / "raw.json"
    input_path.write_text(json.dumps({"events": []}), encoding="utf-8")

    assert cli.main(["normalize", str(input_path)]) == 2


def test_validate_config_command_passes_on_bundled_config(capsys):
    assert cli.main(["validate-config"]) == 0
    assert "OK" in capsys.readouterr().out


def test_fetch_command_writes_artifact_and_charts(tmp_path: Path, monkeypatch, capsys):
    raw_events = [_raw(1), _raw(2, "erin@example.com"), _raw(3)]
    monkeypatch.setattr(
        cli, "create_event_source_client", lambda session=None: _DummySource(raw_events)
    )

    code = cli.main(["fetch", "--output-dir", str(tmp_path), "--page-size", "2"])

    assert code == 0
    artifacts = list(tmp_path.glob("logs-*.json"))
    assert len(artifacts) == 1
    assert len(json.loads(artifacts[0].read_text(encoding="utf-8"))) == 3
    assert (tmp_path / "targets.png").exists()
    assert (tmp_path / "users.png").exists()

    out = capsys.readouterr().out
    assert "dana@example.com" in out
    assert "100.00" in out


def test_fetch_command_reports_transport_failure(tmp_path: Path, monkeypatch):
    monkeypatch.setattr(
        cli, "create_event_source_client", lambda session=None: _DummySource([], fail=True)
    )

    assert cli.main(["fetch", "--output-dir", str(tmp_path)]) == cli.EXIT_TRANSPORT_ERROR
    assert list(tmp_path.iterdir()) == []


def _use_source(monkeypatch, source: _DummySource) -> None:
    monkeypatch.setattr(cli, "create_event_source_client", lambda session=None: source)


def test_fetch_command_uses_explicit_page_size(tmp_path: Path, monkeypatch):
    source = _DummySource([_raw(i) for i in range(1, 6)])
    _use_source(monkeypatch, source)

    assert cli.main(["fetch", "--output-dir", str(tmp_path), "--page-size", "2"]) == 0
    assert source.page_calls == [(1, 2), (3, 4), (5, 5)]


def test_fetch_command_top_limits_printed_table(tmp_path: Path, monkeypatch, capsys):
    raw_events = [_raw(1), _raw(2, "erin@example.com"), _raw(3)]
    _use_source(monkeypatch, _DummySource(raw_events))

    assert cli.main(["fetch", "--output-dir", str(tmp_path), "--top", "1"]) == 0
    out = capsys.readouterr().out
    assert "dana@example.com" in out
    assert "erin@example.com" not in out


@pytest.mark.parametrize(
    "option,value",
    [
        ("--page-size", "0"),
        ("--page-size", "-5"),
        ("--page-size", "many"),
        ("--top", "0"),
        ("--top", "-1"),
    ],
)
def test_fetch_command_rejects_non_positive_options(
    tmp_path: Path, monkeypatch, option: str, value: str
):
    source = _DummySource([_raw(1), _raw(2)])
    _use_source(monkeypatch, source)

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["fetch", "--output-dir", str(tmp_path), option, value])
    assert excinfo.value.code == 2
    assert source.page_calls == []
    assert list(tmp_path.iterdir()) == []


def test_fetch_command_reports_malformed_data(tmp_path: Path, monkeypatch):
    bad = _raw(2)
    bad["ips"] = []
    _use_source(monkeypatch, _DummySource([_raw(1), bad, _raw(3)]))

    assert cli.main(["fetch", "--output-dir", str(tmp_path)]) == cli.EXIT_MALFORMED_DATA
    assert list(tmp_path.glob("logs-*.json")) == []


def test_fetch_command_reports_bad_pipeline_config(tmp_path: Path, monkeypatch):
    monkeypatch.setattr(config_loader, "_CACHE", {"pipeline": {"page_size": "lots"}})
    source = _DummySource([_raw(1), _raw(2)])
    _use_source(monkeypatch, source)

    assert cli.main(["fetch", "--output-dir", str(tmp_path)]) == 1
    assert source.page_calls == []


def test_validate_config_command_fails_on_bad_config(tmp_path: Path, monkeypatch, capsys):
    path = tmp_path / "bad.yaml"
    path.write_text("api:\n  base_url: ''\npipeline:\n  page_size: 0\n", encoding="utf-8")
    monkeypatch.setenv("EVENT_SOURCE_CONFIG_PATH", str(path))
    monkeypatch.setattr(config_loader, "_CACHE", None)

    assert cli.main(["validate-config"]) == 1
    err = capsys.readouterr().err
    assert "api.base_url" in err
    assert "pipeline.page_size" in err


def test_validate_config_command_fails_on_missing_file(tmp_path: Path, monkeypatch):
    monkeypatch.setenv("EVENT_SOURCE_CONFIG_PATH", str(tmp_path / "nope.yaml"))
    monkeypatch.setattr(config_loader, "_CACHE", None)

    assert cli.main(["validate-config"]) == 1
