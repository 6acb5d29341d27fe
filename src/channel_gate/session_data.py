# src/channel_gate/session_data.py

from typing import List, Optional, Union

from pydantic import BaseModel


def to_epoch_ms(instant: float) -> int:
    """Expiry instants are kept as epoch seconds and reported to browsers in milliseconds."""
    return int(instant * 1000)


class TokenRecord(BaseModel):
    """
    A single-use access token. Only the opaque value ever leaves the server;
    the record itself lives in the TokenStore until it is redeemed or swept.
    """
    value: str
    expires_at: float
    consumed: bool = False


class SessionRecord(BaseModel):
    """
    Server-side half of a browser session. Only the id is stored in the cookie.
    """
    id: str
    expires_at: float


# Stored catalogs are hand-edited; public fields pass through as any JSON scalar.
JsonScalar = Optional[Union[str, int, float, bool]]


class ChannelSummary(BaseModel):
    name: JsonScalar = None
    logo: JsonScalar = None
    manifestUri: JsonScalar = None
    category: JsonScalar = None


# --- Response bodies ---
class TokenResponse(BaseModel):
    token: str
    expiry: int


class SessionStatusResponse(BaseModel):
    success: bool
    expiry: int


class ChannelListResponse(BaseModel):
    success: bool
    channels: List[ChannelSummary]
