"""Shared fixtures.

XDG ディレクトリ・カレントディレクトリ・FLASHDECK_* 環境変数をテストごとに
tmp_path へ隔離し、開発者のホームにある設定やデッキを読まないようにする。
"""

from __future__ import annotations

import os

import pytest

from flashdeck.clock import FixedClock
from tests.factories import T0


@pytest.fixture(autouse=True)
def _isolated_env(tmp_path, monkeypatch: pytest.MonkeyPatch):
    for key in list(os.environ):
        if key.upper().startswith("FLASHDECK_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "xdg-data"))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg-config"))
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(T0)
