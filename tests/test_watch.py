"""Tests for afr.watch: change batches to broadcast messages."""

import re

import pytest
from watchfiles import Change

import afr.watch
from afr.fs.dirs import Dir
from afr.watch import change_type, translate, watch


class TestChangeType:
    def test_mapping(self) -> None:
        assert change_type(Change.modified) == "change"
        assert change_type(Change.added) == "rename"
        assert change_type(Change.deleted) == "rename"


class TestTranslate:
    def test_relative_to_dir(self, tmp_path) -> None:
        public = Dir(tmp_path / "public")
        changes = {(Change.modified, str(tmp_path / "public" / "css" / "main.css"))}
        assert list(translate(changes, [public])) == [{"type": "change", "path": "css/main.css"}]

    def test_sorted_by_path(self, tmp_path) -> None:
        public = Dir(tmp_path)
        changes = {
            (Change.modified, str(tmp_path / "b.css")),
            (Change.added, str(tmp_path / "a.html")),
            (Change.deleted, str(tmp_path / "c.js")),
        }
        assert list(translate(changes, [public])) == [
            {"type": "rename", "path": "a.html"},
            {"type": "change", "path": "b.css"},
            {"type": "rename", "path": "c.js"},
        ]

    def test_disallowed_paths_are_dropped(self, tmp_path) -> None:
        only_css = Dir(tmp_path, re.compile(r"\.css$"))
        changes = {
            (Change.modified, str(tmp_path / "main.css")),
            (Change.modified, str(tmp_path / "index.html")),
        }
        assert list(translate(changes, [only_css])) == [{"type": "change", "path": "main.css"}]

    def test_outside_every_dir_is_dropped(self, tmp_path) -> None:
        public = Dir(tmp_path / "public")
        changes = {(Change.modified, str(tmp_path / "other" / "x.css"))}
        assert list(translate(changes, [public])) == []

    def test_first_matching_dir_wins(self, tmp_path) -> None:
        outer = Dir(tmp_path)
        inner = Dir(tmp_path / "public")
        changes = {(Change.modified, str(tmp_path / "public" / "main.css"))}
        assert list(translate(changes, [inner, outer])) == [{"type": "change", "path": "main.css"}]
        assert list(translate(changes, [outer, inner])) == [{"type": "change", "path": "public/main.css"}]

    def test_falls_through_to_allowing_dir(self, tmp_path) -> None:
        html_only = Dir(tmp_path, re.compile(r"\.html$"))
        everything = Dir(tmp_path)
        changes = {(Change.modified, str(tmp_path / "main.css"))}
        assert list(translate(changes, [html_only, everything])) == [{"type": "change", "path": "main.css"}]


class TestWatch:
    async def test_yields_translated_batches(self, tmp_path, monkeypatch) -> None:
        seen = {}

        async def fake_awatch(*targets, stop_event=None, debounce=None):
            seen["targets"] = targets
            seen["debounce"] = debounce
            yield {(Change.modified, str(tmp_path / "main.css"))}
            yield {(Change.added, str(tmp_path / "new.html")), (Change.modified, str(tmp_path / ".git" / "HEAD"))}

        monkeypatch.setattr(afr.watch, "awatch", fake_awatch)
        public = Dir(tmp_path, lambda path: not path.startswith("."))

        messages = [msg async for msg in watch([public], debounce_ms=10)]

        assert messages == [
            {"type": "change", "path": "main.css"},
            {"type": "rename", "path": "new.html"},
        ]
        assert seen["targets"] == (tmp_path,)
        assert seen["debounce"] == 10

    async def test_explicit_target(self, tmp_path, monkeypatch) -> None:
        seen = {}

        async def fake_awatch(*targets, stop_event=None, debounce=None):
            seen["targets"] = targets
            return
            yield

        monkeypatch.setattr(afr.watch, "awatch", fake_awatch)
        assert [msg async for msg in watch([Dir(tmp_path)], tmp_path / "src")] == []
        assert seen["targets"] == (tmp_path / "src",)

    async def test_rejects_non_dirs(self, tmp_path) -> None:
        with pytest.raises(TypeError):
            async for _ in watch([str(tmp_path)]):
                pass
