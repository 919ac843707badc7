"""Tests for the append-file channel."""

import json

import pytest

from pipes_channel.base.channels import FileChannel
from pipes_channel.base.errors import ChannelClosedError, ChannelIOError
from pipes_channel.base.messages import PipesMessage


def test_file_channel_writes_one_line_per_message(tmp_path):
    """Verify each message becomes one JSON line, in write order."""
    path = tmp_path / "messages.jsonl"
    channel = FileChannel(str(path))

    messages = [{"method": "log", "params": {"n": i}} for i in range(5)]
    for message in messages:
        channel.write_message(message)

    lines = path.read_text(encoding="utf-8").splitlines()
    assert [json.loads(line) for line in lines] == messages


def test_file_channel_preserves_existing_content(tmp_path):
    """Verify the file is appended to, never truncated."""
    path = tmp_path / "messages.jsonl"
    path.write_text('{"existing":true}\n', encoding="utf-8")

    channel = FileChannel(str(path))
    channel.write_message({"method": "opened"})
    channel.write_message({"method": "closed"})

    lines = path.read_text(encoding="utf-8").splitlines()
    assert lines == [
        '{"existing":true}',
        '{"method":"opened"}',
        '{"method":"closed"}',
    ]


def test_file_channel_does_no_io_until_first_write(tmp_path):
    path = tmp_path / "messages.jsonl"
    FileChannel(str(path))
    assert not path.exists()


def test_file_channel_survives_rotation_between_writes(tmp_path):
    """Verify a file moved away between writes is recreated at the path."""
    path = tmp_path / "messages.jsonl"
    rotated = tmp_path / "messages.jsonl.1"
    channel = FileChannel(path)

    channel.write_message({"seq": 1})
    path.rename(rotated)
    channel.write_message({"seq": 2})

    assert rotated.read_text(encoding="utf-8") == '{"seq":1}\n'
    assert path.read_text(encoding="utf-8") == '{"seq":2}\n'


def test_file_channel_encodes_pipes_message_by_alias(tmp_path):
    path = tmp_path / "messages.jsonl"
    FileChannel(str(path)).write_message(PipesMessage(method="log", params={"message": "hi"}))

    payload = json.loads(path.read_text(encoding="utf-8"))
    assert payload == {
        "__pipes_version": "0.1",
        "method": "log",
        "params": {"message": "hi"},
    }


def test_file_channel_wraps_os_errors(tmp_path):
    """Verify a missing parent directory surfaces as ChannelIOError."""
    path = tmp_path / "missing" / "messages.jsonl"
    channel = FileChannel(str(path))

    with pytest.raises(ChannelIOError) as exc_info:
        channel.write_message({"method": "log"})

    assert exc_info.value.target == str(path)
    assert isinstance(exc_info.value.__cause__, OSError)


def test_file_channel_unencodable_message_writes_nothing(tmp_path):
    path = tmp_path / "messages.jsonl"
    channel = FileChannel(str(path))

    with pytest.raises(TypeError):
        channel.write_message(["not", "a", "mapping"])

    assert not path.exists()


def test_file_channel_rejects_writes_after_close(tmp_path):
    path = tmp_path / "messages.jsonl"
    with FileChannel(str(path)) as channel:
        channel.write_message({"method": "log"})

    with pytest.raises(ChannelClosedError):
        channel.write_message({"method": "log"})
    assert len(path.read_text(encoding="utf-8").splitlines()) == 1
