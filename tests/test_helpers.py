"""Unit tests for the envelope codec and factory helpers."""

import json

import pytest
from agentbridge import (
    DecodeError,
    Envelope,
    EnvelopeKind,
    create_message,
    decode,
    derive_message,
    encode,
)

# --- Factory ---


class TestCreateMessage:
    def test_defaults(self):
        env = create_message(from_agent="choa", text="hello")
        assert env.from_agent == "choa"
        assert env.depth == 0
        assert env.kind == EnvelopeKind.MESSAGE

    def test_echo(self):
        env = create_message(from_agent="choa", text="hello", kind=EnvelopeKind.ECHO)
        assert env.is_echo

    def test_explicit_timestamp(self):
        env = create_message(from_agent="choa", text="hello", timestamp=42)
        assert env.timestamp == 42

    def test_derive_is_one_hop_deeper(self):
        parent = create_message(from_agent="sera", text="초아야", depth=1)
        child = derive_message(parent, from_agent="choa", text="응!")
        assert child.depth == 2
        assert child.from_agent == "choa"
        assert child.kind == EnvelopeKind.MESSAGE
        assert child.id != parent.id


# --- Codec ---


class TestEncode:
    def test_wire_keys(self):
        env = create_message(from_agent="sera", text="hi", timestamp=5)
        data = json.loads(encode(env))
        assert data["from"] == "sera"
        assert data["text"] == "hi"
        assert data["timestamp"] == 5
        assert data["depth"] == 0
        assert data["type"] == "message"

    def test_non_ascii_survives(self):
        env = create_message(from_agent="sera", text="초아야 밥 먹었어?")
        assert decode(encode(env)).text == "초아야 밥 먹었어?"

    def test_roundtrip(self):
        env = create_message(from_agent="sera", text="hi", depth=2, kind=EnvelopeKind.ECHO)
        assert decode(encode(env)) == env


class TestDecode:
    def test_from_str(self):
        env = decode('{"from": "sera", "text": "hi"}')
        assert env.from_agent == "sera"
        assert env.depth == 0
        assert env.kind == EnvelopeKind.MESSAGE

    def test_from_original_bridge_payload(self):
        raw = json.dumps({"from": "choa", "text": "hi", "depth": 1, "ts": 1700000000000})
        env = decode(raw.encode())
        assert env.depth == 1
        assert env.timestamp == 1700000000000

    def test_from_echo_payload(self):
        env = decode(json.dumps({"type": "echo", "from": "choa", "text": "hi", "ts": 1}))
        assert env.is_echo

    def test_stream_field_map_strings_coerced(self):
        env = decode({"from": "choa", "text": "hi", "timestamp": "1700000000000", "depth": "0"})
        assert env.timestamp == 1700000000000
        assert env.depth == 0

    def test_returns_envelope(self):
        assert isinstance(decode({"from": "choa", "text": "hi"}), Envelope)

    @pytest.mark.parametrize(
        "raw",
        [
            b"not json",
            b"\xff\xfe",
            "[1, 2, 3]",
            '"just a string"',
            '{"text": "no sender"}',
            '{"from": "sera", "text": "hi", "depth": -1}',
            '{"from": "sera", "text": "hi", "type": "shout"}',
            '{"from": "sera", "text": ""}',
        ],
    )
    def test_malformed_raises_decode_error(self, raw):
        with pytest.raises(DecodeError):
            decode(raw)

    def test_error_names_missing_field(self):
        with pytest.raises(DecodeError, match="from"):
            decode('{"text": "no sender"}')
