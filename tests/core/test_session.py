"""Tests for scoped channels and the message reporter."""

import json

import pytest

from pipes_channel.base.channels import BufferedStreamChannel
from pipes_channel.core import (
    ConfigurationError,
    DefaultWriter,
    MessageReporter,
    open_message_channel,
)


class RecordingChannel:
    """Channel that records messages and close calls."""

    def __init__(self):
        self.messages = []
        self.close_calls = 0

    def write_message(self, message):
        self.messages.append(message)

    def close(self):
        self.close_calls += 1


class ExtrasWriter(DefaultWriter):
    def get_opened_extras(self):
        return {"worker": "w-1"}


def _read_lines(text):
    return [json.loads(line) for line in text.splitlines()]


def test_buffered_stderr_scenario(capsys):
    """Verify two buffered messages appear on stderr only after disposal."""
    with open_message_channel({"buffered_stdio": "stderr"}) as channel:
        assert isinstance(channel, BufferedStreamChannel)
        channel.write_message({"id": "M1"})
        channel.write_message({"id": "M2"})
        assert capsys.readouterr().err == ""

    assert _read_lines(capsys.readouterr().err) == [{"id": "M1"}, {"id": "M2"}]


def test_open_message_channel_flushes_on_error(capsys):
    with pytest.raises(ValueError):
        with open_message_channel({"buffered_stdio": "stdout"}) as channel:
            channel.write_message({"id": "M1"})
            raise ValueError("boom")

    assert _read_lines(capsys.readouterr().out) == [{"id": "M1"}]


def test_open_message_channel_rejects_bad_params():
    with pytest.raises(ConfigurationError):
        with open_message_channel({}):
            pass


def test_open_message_channel_with_file(tmp_path):
    path = tmp_path / "messages.jsonl"
    with open_message_channel({"path": str(path)}) as channel:
        channel.write_message({"id": "M1"})

    assert _read_lines(path.read_text(encoding="utf-8")) == [{"id": "M1"}]


def test_reporter_sends_opened_and_closed(capsys):
    with MessageReporter.open({"stdio": "stdout"}, ExtrasWriter()) as reporter:
        reporter.report_log("starting", level="debug")
        reporter.report_custom_message({"rows": 10})

    messages = _read_lines(capsys.readouterr().out)
    assert [m["method"] for m in messages] == [
        "opened",
        "log",
        "report_custom_message",
        "closed",
    ]
    assert all(m["__pipes_version"] == "0.1" for m in messages)
    assert messages[0]["params"] == {"extras": {"worker": "w-1"}}
    assert messages[1]["params"] == {"message": "starting", "level": "DEBUG"}
    assert messages[2]["params"] == {"payload": {"rows": 10}}
    assert messages[3]["params"] == {}


def test_reporter_reports_exception_and_closes_channel():
    channel = RecordingChannel()

    with pytest.raises(KeyError):
        with MessageReporter(channel):
            raise KeyError("missing")

    opened, closed = channel.messages
    assert opened.method == "opened"
    assert opened.params == {"extras": {}}
    assert closed.method == "closed"
    assert closed.params["exception"]["name"] == "KeyError"
    assert closed.params["exception"]["stack"]
    assert channel.close_calls == 1


def test_reporter_close_is_idempotent():
    channel = RecordingChannel()
    reporter = MessageReporter(channel)
    reporter.report_opened()
    reporter.report_opened()
    reporter.close()
    reporter.close()

    assert [m.method for m in channel.messages] == ["opened", "closed"]
    assert channel.close_calls == 1


def test_reporter_over_buffered_channel_delivers_everything_on_exit(capsys):
    with MessageReporter.open({"buffered_stdio": "stderr"}) as reporter:
        reporter.report_log("working")
        assert capsys.readouterr().err == ""

    methods = [m["method"] for m in _read_lines(capsys.readouterr().err)]
    assert methods == ["opened", "log", "closed"]


def test_reporter_closes_channel_when_opened_payload_fails():
    """Verify the channel is disposed even if entering the reporter raises."""

    class BadExtrasWriter(DefaultWriter):
        def get_opened_extras(self):
            return ["not", "a", "mapping"]

    channel = RecordingChannel()

    with pytest.raises(TypeError):
        with MessageReporter(channel, BadExtrasWriter()):
            pass

    assert channel.messages == []
    assert channel.close_calls == 1
