"""Tests for the command line interface."""

from __future__ import annotations

import io
import json

import click
import pytest
from click.testing import CliRunner

from AetherRealtime.cli.main import cli, load_app, read_events, replay_events
from AetherRealtime.kernel.lifecycle import HookName


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def logging_calls(monkeypatch):
    """Record setup_logging calls instead of attaching real handlers."""
    calls: list[tuple] = []

    def fake_setup_logging(level="INFO", log_file=None, console=True):
        calls.append((level, log_file))

    monkeypatch.setattr("AetherRealtime.kernel.logging.setup_logging", fake_setup_logging)
    return calls


@pytest.fixture
def events_file(tmp_path):
    path = tmp_path / "events.jsonl"
    path.write_text(
        "\n".join(
            [
                "# recorded session",
                json.dumps({"type": "echo", "payload": {"n": 1}}),
                "",
                json.dumps({"type": "announce", "client_id": "bob"}),
                json.dumps({"type": "unrouted"}),
            ]
        ),
        encoding="utf-8",
    )
    return path


class TestReadEvents:
    def test_skips_blank_and_comment_lines(self):
        events = read_events(io.StringIO('# c\n\n{"type": "a"}\n'))

        assert events == [{"type": "a"}]

    def test_invalid_json(self):
        with pytest.raises(click.ClickException, match="line 1"):
            read_events(io.StringIO("{not json"))

    def test_type_is_required(self):
        with pytest.raises(click.ClickException, match="type"):
            read_events(io.StringIO('{"payload": 1}'))


class TestLoadApp:
    def test_requires_module_and_attribute(self):
        with pytest.raises(click.BadParameter):
            load_app("tests.replay_app")

    def test_unknown_module(self):
        with pytest.raises(click.BadParameter):
            load_app("tests.no_such_module:app")

    def test_unknown_attribute(self):
        with pytest.raises(click.BadParameter):
            load_app("tests.replay_app:missing")


class TestReplay:
    async def test_replay_events_collects_outbound(self):
        from tests.replay_app import build_app

        outbound = await replay_events(build_app, [{"type": "echo", "payload": "hi"}])

        assert outbound == [{"kind": "send", "type": "echo", "payload": "hi"}]

    async def test_replay_rejects_non_app(self):
        with pytest.raises(click.ClickException):
            await replay_events(lambda: "not an app", [])

    def test_replay_command(self, runner, events_file, logging_calls):
        result = runner.invoke(cli, ["replay", "tests.replay_app:build_app", str(events_file)])

        assert result.exit_code == 0, result.output
        lines = [json.loads(line) for line in result.output.splitlines()]
        assert lines == [
            {"kind": "send", "type": "echo", "payload": {"n": 1}},
            {"kind": "broadcast", "type": "announced", "payload": {"from": "bob"}},
        ]
        assert logging_calls == [("WARNING", None)]

    def test_replay_with_instance_and_debug(self, runner, events_file, logging_calls):
        result = runner.invoke(cli, ["replay", "tests.replay_app:app", str(events_file), "--debug"])

        assert result.exit_code == 0, result.output
        assert logging_calls == [("DEBUG", None)]

    def test_replay_bad_target(self, runner, events_file, logging_calls):
        result = runner.invoke(cli, ["replay", "nocolon", str(events_file)])

        assert result.exit_code != 0


class TestHooksCommand:
    def test_lists_hook_names(self, runner):
        result = runner.invoke(cli, ["hooks"])

        assert result.exit_code == 0
        assert result.output.split() == HookName.names()
