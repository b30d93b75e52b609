"""Tests for configuration loading and the command-line front end."""

from __future__ import annotations

import json

import httpx
import pytest

from ndjsondelta import cli
from ndjsondelta.config import load_config
from ndjsondelta.delta import compute_delta, field_key
from ndjsondelta.log import setup_logging
from ndjsondelta.sources import HttpObjectReader

OLD = '{"id":1,"name":"A"}\n{"id":2,"name":"B"}\n{"id":3,"name":"C"}\n'
NEW = '{"id":1,"name":"A"}\n{"id":2,"name":"B2"}\n{"id":4,"name":"D"}\n'


@pytest.fixture
def files(tmp_path):
    old = tmp_path / "old.ndjson"
    new = tmp_path / "new.ndjson"
    old.write_text(OLD, encoding="utf-8")
    new.write_text(NEW, encoding="utf-8")
    return str(old), str(new)


# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------


class TestConfig:
    def test_defaults(self) -> None:
        config = load_config()
        assert config.log.level == "warning"
        assert config.encoding == "utf-8-sig"
        assert config.remote.base_url == ""
        assert config.remote.timeout_seconds == 30.0

    def test_from_env(self, monkeypatch) -> None:
        monkeypatch.setenv("NDJSONDELTA_LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("NDJSONDELTA_REMOTE_BASE_URL", "https://store.example.net/")
        monkeypatch.setenv("NDJSONDELTA_REMOTE_TOKEN", "tok")
        monkeypatch.setenv("NDJSONDELTA_REMOTE_TIMEOUT", "5")
        config = load_config()
        assert config.log.level == "debug"
        assert config.remote.base_url == "https://store.example.net"
        assert config.remote.token == "tok"
        assert config.remote.timeout_seconds == 5.0

    def test_timeout_clamped(self, monkeypatch) -> None:
        monkeypatch.setenv("NDJSONDELTA_REMOTE_TIMEOUT", "9999")
        assert load_config().remote.timeout_seconds == 300.0
        monkeypatch.setenv("NDJSONDELTA_REMOTE_TIMEOUT", "0")
        assert load_config().remote.timeout_seconds == 1.0

    def test_invalid_log_level(self, monkeypatch) -> None:
        monkeypatch.setenv("NDJSONDELTA_LOG_LEVEL", "chatty")
        with pytest.raises(ValueError, match="Invalid log level"):
            load_config()

    def test_invalid_encoding(self, monkeypatch) -> None:
        monkeypatch.setenv("NDJSONDELTA_ENCODING", "no-such-codec")
        with pytest.raises(ValueError, match="Invalid encoding"):
            load_config()

    def test_encoding_from_env(self, monkeypatch) -> None:
        monkeypatch.setenv("NDJSONDELTA_ENCODING", "latin-1")
        assert load_config().encoding == "latin-1"


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


class TestCli:
    def test_differences(self, files, capsys) -> None:
        code = cli.main([*files, "--key", "id"])
        assert code == cli.EXIT_DIFFERENT
        out = json.loads(capsys.readouterr().out)
        assert out == {
            "added": [{"id": 4, "name": "D"}],
            "removed": [{"id": 3, "name": "C"}],
            "changed": [{"old": {"id": 2, "name": "B"}, "new": {"id": 2, "name": "B2"}}],
        }

    def test_no_differences(self, files, capsys) -> None:
        old, _ = files
        assert cli.main([old, old, "--key", "id"]) == cli.EXIT_SAME
        assert json.loads(capsys.readouterr().out) == {"added": [], "removed": [], "changed": []}

    def test_summary(self, files, capsys) -> None:
        assert cli.main([*files, "--key", "id", "--summary"]) == cli.EXIT_DIFFERENT
        assert json.loads(capsys.readouterr().out) == {"added": 1, "removed": 1, "changed": 1}

    def test_nested_and_composite_key(self, tmp_path, capsys) -> None:
        old = tmp_path / "old.ndjson"
        new = tmp_path / "new.ndjson"
        old.write_text('{"m":{"t":"a","n":1},"v":1}\n{"m":{"t":"b","n":1},"v":1}\n')
        new.write_text('{"m":{"t":"a","n":1},"v":2}\n{"m":{"t":"b","n":1},"v":1}\n')
        code = cli.main([str(old), str(new), "--key", "m.t", "--key", "m.n", "--summary"])
        assert code == cli.EXIT_DIFFERENT
        assert json.loads(capsys.readouterr().out) == {"added": 0, "removed": 0, "changed": 1}

    def test_sort(self, tmp_path, capsys) -> None:
        old = tmp_path / "old.ndjson"
        old.write_text('{"id":"b"}\n{"id":"a"}\n')
        empty = tmp_path / "empty.ndjson"
        empty.write_text("")
        cli.main([str(old), str(empty), "--key", "id", "--sort"])
        assert json.loads(capsys.readouterr().out)["removed"] == [{"id": "a"}, {"id": "b"}]

    def test_missing_file(self, files, tmp_path, capsys) -> None:
        old, _ = files
        code = cli.main([old, str(tmp_path / "missing.ndjson"), "--key", "id"])
        assert code == cli.EXIT_ERROR
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "No such file" in captured.err

    def test_key_missing_from_record(self, files, capsys) -> None:
        code = cli.main([*files, "--key", "uuid"])
        assert code == cli.EXIT_ERROR
        assert "cannot extract key" in capsys.readouterr().err

    def test_remote_without_config(self, files, capsys) -> None:
        old, _ = files
        code = cli.main([old, "remote:exports/new.ndjson", "--key", "id"])
        assert code == cli.EXIT_ERROR
        assert "No remote store configured" in capsys.readouterr().err

    def test_remote_source(self, files, monkeypatch, capsys) -> None:
        old, _ = files
        monkeypatch.setenv("NDJSONDELTA_REMOTE_BASE_URL", "https://store.example.net")
        transport = httpx.MockTransport(
            lambda request: httpx.Response(200, content=NEW.encode())
            if request.url.path == "/exports/new.ndjson"
            else httpx.Response(404)
        )

        def reader_factory(base_url, token=None, timeout=30.0):
            return HttpObjectReader(base_url, token=token, timeout=timeout, transport=transport)

        monkeypatch.setattr(cli, "HttpObjectReader", reader_factory)
        code = cli.main([old, "remote:exports/new.ndjson", "--key", "id", "--summary"])
        assert code == cli.EXIT_DIFFERENT
        assert json.loads(capsys.readouterr().out) == {"added": 1, "removed": 1, "changed": 1}

    def test_invalid_log_level_env(self, files, monkeypatch, capsys) -> None:
        monkeypatch.setenv("NDJSONDELTA_LOG_LEVEL", "chatty")
        assert cli.main([*files, "--key", "id"]) == cli.EXIT_ERROR
        assert "Invalid log level" in capsys.readouterr().err

    def test_invalid_encoding_env(self, files, monkeypatch, capsys) -> None:
        monkeypatch.setenv("NDJSONDELTA_ENCODING", "no-such-codec")
        assert cli.main([*files, "--key", "id"]) == cli.EXIT_ERROR
        assert "Invalid encoding" in capsys.readouterr().err

    def test_key_is_required(self, files) -> None:
        with pytest.raises(SystemExit) as exc_info:
            cli.main(list(files))
        assert exc_info.value.code == 2


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------


class TestLogging:
    def test_library_is_silent_without_setup(self, capsys) -> None:
        result = compute_delta('{"id":1}\nbroken\n', '{"id":2}\n', field_key("id"))
        assert len(result.added) == 1
        captured = capsys.readouterr()
        assert captured.out == ""
        assert captured.err == ""

    def test_setup_logging_writes_json_to_stderr(self, capsys) -> None:
        setup_logging("debug")
        compute_delta('{"id":1}\nbroken\n', '{"id":1}\n', field_key("id"))
        captured = capsys.readouterr()
        assert captured.out == ""
        events = [json.loads(line) for line in captured.err.splitlines()]
        skipped = [e for e in events if e["event"] == "ndjson_line_skipped"]
        assert skipped[0]["line_number"] == 2
        assert skipped[0]["level"] == "debug"
        assert skipped[0]["component"] == "formats"
        assert "ts" in skipped[0]

    def test_setup_logging_twice_keeps_one_handler(self, capsys) -> None:
        setup_logging("debug")
        setup_logging("debug")
        compute_delta("broken\n", "", field_key("id"))
        err = capsys.readouterr().err
        assert err.count('"ndjson_line_skipped"') == 1

    def test_level_filters_events(self, capsys) -> None:
        setup_logging("warning")
        compute_delta("broken\n", "", field_key("id"))
        assert capsys.readouterr().err == ""

    def test_cli_debug_logs_stay_off_stdout(self, tmp_path, capsys) -> None:
        old = tmp_path / "old.ndjson"
        new = tmp_path / "new.ndjson"
        old.write_text('{"id":1}\nbroken\n', encoding="utf-8")
        new.write_text('{"id":1}\n', encoding="utf-8")
        assert cli.main([str(old), str(new), "--key", "id", "--log-level", "debug"]) == cli.EXIT_SAME
        captured = capsys.readouterr()
        assert json.loads(captured.out) == {"added": [], "removed": [], "changed": []}
        assert "ndjson_line_skipped" in captured.err
