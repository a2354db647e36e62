"""Tests for afr.realtime.messages: encoding and the reaction policy."""

import json

import pytest

from afr.realtime.messages import (
    Reaction,
    change,
    encode_event_stream,
    encode_json,
    ext_name,
    frame_event,
    reaction,
)


class TestChange:
    def test_defaults(self) -> None:
        assert change("main.css") == {"type": "change", "path": "main.css"}

    def test_kind_and_key(self) -> None:
        assert change("a.js", kind="rename", key="build") == {
            "type": "rename",
            "path": "a.js",
            "key": "build",
        }


class TestEncoding:
    def test_compact_json(self) -> None:
        assert encode_json({"type": "change", "path": "a b.css"}) == b'{"type":"change","path":"a b.css"}'

    def test_unicode_is_kept(self) -> None:
        data = encode_json({"path": "café.css"})
        assert json.loads(data) == {"path": "café.css"}
        assert "café".encode() in data

    def test_frame(self) -> None:
        assert frame_event(b"{}") == b"data: {}\n\n"

    def test_event_stream(self) -> None:
        assert encode_event_stream({"type": "deinit"}) == b'data: {"type":"deinit"}\n\n'


class TestReaction:
    @pytest.mark.parametrize(
        ("path", "expected"),
        [
            ("main.css", Reaction.STYLESHEET),
            ("/styles/theme.min.css", Reaction.STYLESHEET),
            ("main.css.map", Reaction.IGNORE),
            ("index.html", Reaction.RELOAD),
            ("app.js", Reaction.RELOAD),
            ("README", Reaction.RELOAD),
        ],
    )
    def test_change(self, path, expected) -> None:
        assert reaction({"type": "change", "path": path}) is expected

    def test_rename_uses_same_policy(self) -> None:
        assert reaction({"type": "rename", "path": "a.css"}) is Reaction.STYLESHEET

    def test_missing_path_reloads(self) -> None:
        assert reaction({"type": "change"}) is Reaction.RELOAD

    @pytest.mark.parametrize("kind", ["deinit", "custom", None])
    def test_other_types_are_ignored(self, kind) -> None:
        assert reaction({"type": kind, "path": "a.css"}) is None


class TestExtName:
    @pytest.mark.parametrize(
        ("path", "expected"),
        [
            ("a.css", ".css"),
            ("app.min.js", ".js"),
            (".css", ""),
            ("", ""),
            (None, ""),
        ],
    )
    def test_ext_name(self, path, expected) -> None:
        assert ext_name(path) == expected
