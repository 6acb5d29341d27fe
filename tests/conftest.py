from __future__ import annotations

import json
from pathlib import Path
from typing import Callable, Iterator

import pytest
from fastapi.testclient import TestClient

from channel_gate.config import Settings
from channel_gate.main import create_app

TOKEN_SECONDS = 300
SESSION_SECONDS = 3600


class FakeClock:
    """Wall clock stand-in; tests move time explicitly."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def public_dir(tmp_path: Path) -> Path:
    d = tmp_path / "public"
    d.mkdir()
    (d / "style.css").write_text("body { color: black; }", encoding="utf-8")
    (tmp_path / "secret.txt").write_text("outside the public dir", encoding="utf-8")
    return d


@pytest.fixture
def channels_file(tmp_path: Path) -> Path:
    path = tmp_path / "channels.json"
    path.write_text(
        json.dumps(
            [
                {
                    "name": "News One",
                    "logo": "https://cdn.example/news.png",
                    "manifestUri": "https://cdn.example/news.mpd",
                    "category": "News",
                    "clearKeys": {"kid": "key"},
                },
                {
                    "name": "Sports Two",
                    "logo": "https://cdn.example/sports.png",
                    "manifestUri": "https://cdn.example/sports.mpd",
                    "category": "Sports",
                    "drm": {"widevine": "https://license.example"},
                },
            ]
        ),
        encoding="utf-8",
    )
    return path


@pytest.fixture
def make_settings(public_dir: Path, channels_file: Path) -> Callable[..., Settings]:
    def _make(**overrides) -> Settings:
        values = dict(
            AUTH_MODE="token",
            TOKEN_DURATION_SECONDS=TOKEN_SECONDS,
            SESSION_DURATION_SECONDS=SESSION_SECONDS,
            SWEEP_INTERVAL_SECONDS=3600,
            TLS_TERMINATED=False,
            TRUSTED_PROXIES="",
            PUBLIC_DIR=public_dir,
            CHANNELS_FILE=channels_file,
        )
        values.update(overrides)
        return Settings(**values)

    return _make


@pytest.fixture
def app(make_settings, clock: FakeClock):
    return create_app(make_settings(), clock=clock)


@pytest.fixture
def client(app) -> Iterator[TestClient]:
    with TestClient(app) as c:
        yield c
