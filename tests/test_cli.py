"""
CipherFeed — CLI Tests
Drives cipherfeed.main() with patched argv against a temporary feed.

Run with: pytest tests/test_cli.py -v
"""

import json
import os
import sys

import pytest
from PIL import Image

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import cipherfeed
import core.feed


@pytest.fixture
def run_cli(monkeypatch, tmp_path):
    monkeypatch.setattr(core.feed, "DEFAULT_FEED_DIR", tmp_path / "feed")

    def _run(*argv):
        monkeypatch.setattr(sys, "argv", ["cipherfeed", *argv])
        cipherfeed.main()

    return _run


def test_emotions(run_cli, capsys):
    run_cli("emotions")
    lines = capsys.readouterr().out.splitlines()
    assert [line.split()[0] for line in lines] == ["calm", "joy", "fear", "urgency", "trust"]


def test_encoding(run_cli, capsys):
    run_cli("encoding", "joy")
    data = json.loads(capsys.readouterr().out)
    assert data["shape"] == "circle" and data["symmetryLevel"] == 3


def test_frame(run_cli, tmp_path):
    out = tmp_path / "frames" / "calm.png"
    run_cli("frame", "calm", "-o", str(out), "--width", "40", "--height", "30", "--frame-index", "9")
    assert Image.open(out).size == (40, 30)


def test_frame_rejects_bad_size(run_cli, tmp_path, capsys):
    with pytest.raises(SystemExit) as exc:
        run_cli("frame", "calm", "-o", str(tmp_path / "x.png"), "--width", "0")
    assert exc.value.code == 1
    assert "Error:" in capsys.readouterr().err


def test_animate_gif(run_cli, tmp_path, capsys):
    out = tmp_path / "joy.gif"
    run_cli("animate", "joy", "-o", str(out), "--frames", "20", "--width", "20", "--height", "20")
    assert Image.open(out).format == "GIF"
    assert "100%" in capsys.readouterr().out


def test_post_feed_reveal(run_cli, capsys):
    run_cli("post", "--emotion", "fear", "--caption", "storm", "--pin", "1234")
    out = capsys.readouterr().out
    post_id = out.split("Created post: ")[1].split()[0]
    assert "PIN-protected" in out

    run_cli("feed")
    out = capsys.readouterr().out
    assert post_id in out and "storm" in out and "[PIN]" in out
    assert "fear" not in out.lower()

    run_cli("reveal", post_id, "--pin", "1234")
    assert capsys.readouterr().out.strip() == "Fear"


def test_reveal_wrong_pin(run_cli, capsys):
    run_cli("post", "--emotion", "calm", "--pin", "1234")
    post_id = capsys.readouterr().out.split("Created post: ")[1].split()[0]
    with pytest.raises(SystemExit) as exc:
        run_cli("reveal", post_id, "--pin", "9999")
    assert exc.value.code == 1
    assert capsys.readouterr().err == "Error: Incorrect PIN\n"


def test_reveal_unknown_post(run_cli, capsys):
    with pytest.raises(SystemExit) as exc:
        run_cli("reveal", "post_0_missing")
    assert exc.value.code == 1
    assert capsys.readouterr().err == "Error: Post not found: post_0_missing\n"


def test_empty_feed(run_cli, capsys):
    run_cli("feed")
    assert "No posts yet" in capsys.readouterr().out


def test_clear_needs_confirmation(run_cli, capsys):
    run_cli("post", "--emotion", "joy")
    run_cli("clear")
    assert "Refusing" in capsys.readouterr().out
    assert len(core.feed.load_posts()) == 1
    run_cli("clear", "--yes")
    assert core.feed.load_posts() == []


def test_no_command_prints_help(run_cli, capsys):
    run_cli()
    assert "usage:" in capsys.readouterr().out
