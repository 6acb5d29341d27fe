# src/channel_gate/catalog.py

import json
from pathlib import Path
from typing import Any, List, Mapping

from .errors import InternalParseError
from .session_data import ChannelSummary

# Only these keys ever reach the browser. Anything else on a stored record
# (DRM keys, internal notes) is dropped.
PUBLIC_FIELDS = ("name", "logo", "manifestUri", "category")


def project_channel(record: Mapping[str, Any]) -> ChannelSummary:
    return ChannelSummary(**{field: record.get(field) for field in PUBLIC_FIELDS})


def load_channels(path: Path) -> List[ChannelSummary]:
    """
    Reads the channel catalog and projects every record to its public fields.
    A missing file is an empty catalog; anything unreadable raises InternalParseError.
    """
    path = Path(path)
    if not path.is_file():
        print(f"CATALOG: Channels file not found at {path}. Serving an empty catalog.")
        return []

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, ValueError) as e:
        print(f"CATALOG: Could not read channels file {path}: {e}")
        raise InternalParseError() from e

    if not isinstance(raw, list):
        print(f"CATALOG: Channels file {path} must hold a JSON array, got {type(raw).__name__}.")
        raise InternalParseError()

    channels = []
    for index, record in enumerate(raw):
        if not isinstance(record, dict):
            print(f"CATALOG: Entry {index} in {path} is not an object.")
            raise InternalParseError()
        try:
            channels.append(project_channel(record))
        except ValueError as e:
            print(f"CATALOG: Entry {index} in {path} has malformed public fields: {e}")
            raise InternalParseError() from e
    return channels
