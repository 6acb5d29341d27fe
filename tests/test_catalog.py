from __future__ import annotations

import json
from pathlib import Path

import pytest

from channel_gate.catalog import PUBLIC_FIELDS, load_channels, project_channel
from channel_gate.errors import InternalParseError


def test_projection_is_an_allow_list() -> None:
    record = {
        "name": "News",
        "logo": "https://cdn.example/n.png",
        "manifestUri": "https://cdn.example/n.mpd",
        "category": "News",
        "clearKeys": {"abc": "def"},
        "licenseServer": "https://license.example",
    }
    summary = project_channel(record).model_dump()

    assert set(summary) == set(PUBLIC_FIELDS)
    assert summary["name"] == "News"
    assert "clearKeys" not in summary
    assert "licenseServer" not in summary


def test_projection_fills_missing_public_fields_with_none() -> None:
    summary = project_channel({"name": "Bare"}).model_dump()
    assert summary == {"name": "Bare", "logo": None, "manifestUri": None, "category": None}


def test_load_channels_projects_every_record(channels_file: Path) -> None:
    channels = load_channels(channels_file)

    assert [c.name for c in channels] == ["News One", "Sports Two"]
    for c in channels:
        assert set(c.model_dump()) == set(PUBLIC_FIELDS)


def test_missing_file_is_empty_catalog(tmp_path: Path) -> None:
    assert load_channels(tmp_path / "absent.json") == []


@pytest.mark.parametrize(
    "content",
    [
        "{not json",
        json.dumps({"name": "not a list"}),
        json.dumps(["just a string"]),
        json.dumps([{"name": {"nested": "object"}}]),
    ],
)
def test_malformed_catalog_raises(tmp_path: Path, content: str) -> None:
    path = tmp_path / "channels.json"
    path.write_text(content, encoding="utf-8")

    with pytest.raises(InternalParseError):
        load_channels(path)


def test_numeric_public_fields_are_served(tmp_path: Path) -> None:
    path = tmp_path / "channels.json"
    path.write_text(
        json.dumps(
            [
                {"name": "A", "manifestUri": "u", "category": 7, "drmKey": "secret"},
                {"name": "B", "logo": 3.5, "category": True},
            ]
        ),
        encoding="utf-8",
    )

    channels = [c.model_dump() for c in load_channels(path)]

    assert channels[0] == {"name": "A", "logo": None, "manifestUri": "u", "category": 7}
    assert channels[1] == {"name": "B", "logo": 3.5, "manifestUri": None, "category": True}
