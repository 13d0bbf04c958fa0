"""
Frame and payload decoding
"""

import json
import sys

import pytest

from chat_core import (
    Chat,
    ChatEntry,
    MAX_FRAME_SIZE_BYTES,
    MessageDecodeError,
    RegisterName,
    decode_chat_body,
    decode_client_message,
    is_valid_name,
)


class TestDecodeClientMessage:

    def test_register_name(self):
        message = decode_client_message('{"msg_type": "RegisterName", "data": "alice"}')
        assert message == RegisterName(name="alice")

    def test_chat_keeps_raw_payload(self):
        frame = json.dumps({"msg_type": "Chat", "data": {"name": "alice", "message": "hi"}})
        message = decode_client_message(frame)
        assert isinstance(message, Chat)
        assert message.payload == {"name": "alice", "message": "hi"}

    def test_chat_with_bad_payload_still_decodes_frame(self):
        message = decode_client_message('{"msg_type": "Chat", "data": 42}')
        assert message == Chat(payload=42)

    @pytest.mark.parametrize("frame,reason", [
        ("not json", "invalid_json"),
        ("[1, 2]", "not_an_object"),
        ('{"data": "alice"}', "missing_kind"),
        ('{"msg_type": "Shout", "data": "x"}', "unknown_kind"),
        ('{"msg_type": "RegisterName", "data": 7}', "invalid_name"),
        ('{"msg_type": "RegisterName"}', "invalid_name"),
    ])
    def test_malformed_frames(self, frame, reason):
        with pytest.raises(MessageDecodeError) as exc_info:
            decode_client_message(frame)
        assert exc_info.value.reason == reason

    def test_oversized_frame(self):
        frame = json.dumps({"msg_type": "RegisterName", "data": "x" * MAX_FRAME_SIZE_BYTES})
        with pytest.raises(MessageDecodeError) as exc_info:
            decode_client_message(frame)
        assert exc_info.value.reason == "frame_too_large"
        assert "bytes" in exc_info.value.detail

    def test_multibyte_frame_size_counts_bytes(self):
        frame = json.dumps({"msg_type": "RegisterName", "data": "\u00e9" * (MAX_FRAME_SIZE_BYTES // 2)}, ensure_ascii=False)
        with pytest.raises(MessageDecodeError) as exc_info:
            decode_client_message(frame)
        assert exc_info.value.detail == f"{len(frame.encode('utf-8'))} bytes"

    def test_deeply_nested_frame(self):
        with pytest.raises(MessageDecodeError) as exc_info:
            decode_client_message("[" * 5000 + "]" * 5000)
        assert exc_info.value.reason == "invalid_json"

    @pytest.mark.skipif(not hasattr(sys, "get_int_max_str_digits"), reason="no int digit limit")
    def test_integer_over_digit_limit(self):
        frame = '{"msg_type": "Chat", "data": ' + "1" * 5000 + "}"
        with pytest.raises(MessageDecodeError) as exc_info:
            decode_client_message(frame)
        assert exc_info.value.reason == "invalid_json"


class TestDecodeChatBody:

    def test_valid_body(self):
        assert decode_chat_body({"name": "bob", "message": "yo"}) == ChatEntry(name="bob", message="yo")

    def test_extra_keys_ignored(self):
        entry = decode_chat_body({"name": "bob", "message": "yo", "ts": 1})
        assert entry.message == "yo"

    @pytest.mark.parametrize("payload", [
        "hi",
        None,
        {"name": "bob"},
        {"message": "yo"},
        {"name": 1, "message": "yo"},
        {"name": "bob", "message": ["yo"]},
    ])
    def test_invalid_bodies(self, payload):
        with pytest.raises(MessageDecodeError):
            decode_chat_body(payload)


def test_is_valid_name():
    assert is_valid_name("alice")
    assert is_valid_name(" ")
    assert not is_valid_name("")
