from __future__ import annotations

import json
from pathlib import Path

import pytest

from clarity_logs.cli import main


@pytest.fixture(autouse=True)
def clarity_home(tmp_path: Path, monkeypatch) -> Path:
    monkeypatch.setenv("CLARITY_CONFIG_DIR", str(tmp_path / "cfg"))
    monkeypatch.setenv("CLARITY_LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.delenv("CLARITY_ENCRYPTION_KEYS", raising=False)
    return tmp_path


def test_log_then_tail(capsys) -> None:
    assert main(["log", "hello %s", "world", "--name", "cli"]) == 0
    assert main(["log", "second", "--level", "warning"]) == 0
    capsys.readouterr()

    assert main(["tail", "-n", "1"]) == 0
    out = capsys.readouterr().out.strip().splitlines()
    assert len(out) == 1
    assert out[0].endswith("[app] WARNING: second")

    assert main(["tail", "--name", "cli"]) == 0
    assert "[cli] INFO: hello world" in capsys.readouterr().out


def test_search_is_case_insensitive_by_default(capsys) -> None:
    main(["log", "Payment declined"])
    main(["log", "ok"])
    capsys.readouterr()

    assert main(["search", "PAYMENT"]) == 0
    captured = capsys.readouterr()
    assert "Payment declined" in captured.out
    assert "Found 1 matching entries." in captured.err

    assert main(["search", "PAYMENT", "--case-sensitive"]) == 0
    assert "Found 0 matching entries." in capsys.readouterr().err


def test_export_json_covers_rotated_history(tmp_path: Path, capsys) -> None:
    main(["log", "first"])
    main(["rotate"])
    main(["log", "second"])
    target = tmp_path / "export.json"

    assert main(["export", "--format", "json", "--output", str(target)]) == 0

    data = json.loads(target.read_text(encoding="utf-8"))
    assert [d["message"] for d in data] == ["first", "second"]
    assert "Exported 2 entries" in capsys.readouterr().err


def test_export_text_to_stdout(capsys) -> None:
    main(["log", "plain"])
    capsys.readouterr()
    assert main(["export", "--format", "text"]) == 0
    assert "[app] INFO: plain" in capsys.readouterr().out


def test_clear_by_level(capsys) -> None:
    for _ in range(3):
        main(["log", "noise", "--level", "debug"])
    main(["log", "keep me"])
    capsys.readouterr()

    assert main(["clear", "--level", "debug"]) == 0
    assert "Cleared 3 entries." in capsys.readouterr().err

    main(["tail", "-n", "10"])
    out = capsys.readouterr().out
    assert "keep me" in out and "noise" not in out


def test_rotate(capsys, clarity_home: Path) -> None:
    assert main(["rotate"]) == 0
    assert "Nothing to rotate" in capsys.readouterr().err

    main(["log", "x"])
    assert main(["rotate"]) == 0
    assert ".log.gz" in capsys.readouterr().out
    assert len(list((clarity_home / "logs").glob("clarity.*.log.gz"))) == 1


def test_config_set_get_list_reset(capsys) -> None:
    assert main(["config", "set", "max_log_files", "3"]) == 0
    capsys.readouterr()

    assert main(["config", "get", "max_log_files"]) == 0
    assert capsys.readouterr().out.strip() == "3"

    assert main(["config", "list"]) == 0
    assert "rotation_frequency = none" in capsys.readouterr().out

    assert main(["config", "reset"]) == 0
    capsys.readouterr()
    main(["config", "get", "max_log_files"])
    assert capsys.readouterr().out.strip() == "5"


def test_invalid_input_exits_2(capsys) -> None:
    assert main(["config", "set", "max_log_files", "0"]) == 2
    assert main(["config", "set", "nope", "1"]) == 2
    assert main(["search", "(unclosed"]) == 2
    assert main(["export", "--date", "2025-01-01", "--month", "2025-01"]) == 2
    assert "Error:" in capsys.readouterr().err


def test_unknown_level_is_rejected_by_parser() -> None:
    with pytest.raises(SystemExit) as exc:
        main(["tail", "--level", "critical"])
    assert exc.value.code == 2


def test_encryption_without_keys_exits_2(capsys) -> None:
    main(["config", "set", "encrypt_logs", "true"])
    assert main(["log", "secret"]) == 2
    assert "CLARITY_ENCRYPTION_KEYS" in capsys.readouterr().err


def test_export_hours_lookback(capsys) -> None:
    main(["log", "recent"])
    capsys.readouterr()

    assert main(["export", "--hours", "1"]) == 0
    assert [d["message"] for d in json.loads(capsys.readouterr().out)] == ["recent"]

    assert main(["export", "--hours", "0"]) == 0
    assert json.loads(capsys.readouterr().out) == []


def test_keygen_prints_usable_key(capsys, monkeypatch) -> None:
    assert main(["keygen"]) == 0
    key = capsys.readouterr().out.strip()
    assert len(bytes.fromhex(key)) == 32

    monkeypatch.setenv("CLARITY_ENCRYPTION_KEYS", key)
    assert main(["config", "set", "encrypt_logs", "true"]) == 0
    main(["log", "sealed"])
    assert main(["rotate"]) == 0
    assert ".log.gz.enc" in capsys.readouterr().out
