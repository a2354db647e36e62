"""Shared fixtures: a small site tree on disk and a fresh broadcaster."""

import pytest

from afr.config import BroadConfig
from afr.fs.dirs import Dir
from afr.realtime.broad import Broad


@pytest.fixture
def site_dir(tmp_path):
    """A static site with clean-URL candidates and hidden files."""
    public = tmp_path / "public"
    public.mkdir()

    (public / "index.html").write_text("<h1>Home</h1>")
    (public / "about.html").write_text("<h1>About</h1>")
    (public / "main.css").write_text("body { color: red; }")
    (public / "app.js").write_text("console.log('hi')")
    (public / "404.html").write_text("<h1>Missing</h1>")
    (public / ".env").write_text("SECRET=1")
    (public / "notes.unknownext").write_text("plain")

    docs = public / "docs"
    docs.mkdir()
    (docs / "index.html").write_text("<h1>Docs</h1>")

    # A directory without an index page
    (public / "empty").mkdir()

    return public


@pytest.fixture
def overlay_dir(tmp_path):
    """A second directory that shadows and extends ``site_dir``."""
    overlay = tmp_path / "overlay"
    overlay.mkdir()
    (overlay / "about.html").write_text("<h1>Overlay about</h1>")
    (overlay / "extra.html").write_text("<h1>Extra</h1>")
    return overlay


@pytest.fixture
def site(site_dir) -> Dir:
    """``site_dir`` with dotfiles hidden."""
    return Dir(site_dir, lambda path: not path.startswith(".") and "/." not in path)


@pytest.fixture
def broad() -> Broad:
    return Broad(BroadConfig())
