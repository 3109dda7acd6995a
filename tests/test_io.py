"""Tests for giftovideo.io module."""

import logging
from pathlib import Path
from unittest.mock import patch

import pytest

from giftovideo.io import atomic_write, make_tmpdir, remove_tree, setup_logging


class TestAtomicWrite:
    def test_writes_target(self, tmp_path):
        target = tmp_path / "nested" / "frames.ffconcat"

        with atomic_write(target) as f:
            f.write("ffconcat version 1.0\n")

        assert target.read_text() == "ffconcat version 1.0\n"
        assert list(target.parent.iterdir()) == [target]

    def test_failure_leaves_no_files(self, tmp_path):
        target = tmp_path / "manifest.txt"

        with pytest.raises(RuntimeError):
            with atomic_write(target) as f:
                f.write("partial")
                raise RuntimeError("interrupted")

        assert not target.exists()
        assert list(tmp_path.iterdir()) == []


class TestTemporaryDirectories:
    def test_make_tmpdir_uses_prefix_and_root(self, tmp_path):
        path = make_tmpdir("gif-frames-", tmp_path / "work")

        assert path.is_dir()
        assert path.parent == tmp_path / "work"
        assert path.name.startswith("gif-frames-")

    def test_make_tmpdir_is_unique(self, tmp_path):
        assert make_tmpdir("x-", tmp_path) != make_tmpdir("x-", tmp_path)

    def test_make_tmpdir_with_relative_root_is_absolute(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)

        path = make_tmpdir("gif-frames-", Path("work"))

        assert path.is_absolute()
        assert path.parent == tmp_path / "work"

    def test_remove_tree_ignores_missing(self, tmp_path):
        remove_tree(None)
        remove_tree(tmp_path / "missing")

    def test_remove_tree_logs_failure(self, tmp_path, caplog):
        path = make_tmpdir("stuck-", tmp_path)

        with patch("giftovideo.io.shutil.rmtree", side_effect=PermissionError("denied")):
            with caplog.at_level(logging.WARNING, logger="giftovideo.io"):
                remove_tree(path)

        assert "Could not remove temporary directory" in caplog.text


def test_setup_logging_writes_file(tmp_path):
    logger = setup_logging(tmp_path / "logs", log_level="debug")

    assert logger.name == "giftovideo"
    assert len(list((tmp_path / "logs").glob("giftovideo_*.log"))) == 1
