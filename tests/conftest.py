"""Shared pytest fixtures for the phpdecl test suite."""

from __future__ import annotations

import pytest

from tests.helpers import BAD_PHP, GOOD_PHP


@pytest.fixture
def php_tree(tmp_path):
    """A small source tree: one valid file, one broken file, one vendored file."""
    src = tmp_path / "src"
    src.mkdir()
    (src / "User.php").write_text(GOOD_PHP)
    (src / "Broken.php").write_text(BAD_PHP)
    (src / "notes.txt").write_text("not php")
    vendor = src / "vendor"
    vendor.mkdir()
    (vendor / "Lib.php").write_text(BAD_PHP)
    return tmp_path
