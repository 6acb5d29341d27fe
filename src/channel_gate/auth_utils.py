# src/channel_gate/auth_utils.py

import hmac
import json
from abc import ABC, abstractmethod
from typing import Optional, Tuple

from fastapi import Depends, Request, Response

from .config import Settings
from .errors import Unauthorized
from .session_data import SessionRecord
from .stores import SessionStore, TokenStore


# --- Credential checks ---
# Every strategy answers the same question, "does this credential earn a session?".
# Session issuance afterwards is shared, see main._redeem.

class CredentialCheck(ABC):
    mode: str = ""

    @abstractmethod
    def verify(self, credential: Optional[str]) -> bool:
        ...



class TokenExchangeCheck(CredentialCheck):
    """Redeems a single-use token issued by /generate-token."""
    mode = "token"

    def __init__(self, token_store: TokenStore):
        self.token_store = token_store

    def verify(self, credential: Optional[str]) -> bool:
        return self.token_store.consume(credential)


class StaticPasswordCheck(CredentialCheck):
    """Compares against the configured access code. Reusable, unlike tokens."""
    mode = "password"

    def __init__(self, access_code: str):
        if not access_code:
            raise ValueError("StaticPasswordCheck requires a non-empty access code.")
        self._access_code = access_code.encode("utf-8")

    def verify(self, credential: Optional[str]) -> bool:
        if not credential:
            return False
        return hmac.compare_digest(credential.encode("utf-8"), self._access_code)


def build_credential_check(settings: Settings, token_store: TokenStore) -> CredentialCheck:
    if settings.AUTH_MODE == "password":
        return StaticPasswordCheck(settings.ACCESS_CODE.get_secret_value())
    return TokenExchangeCheck(token_store)


# --- Request body parsing ---

def _is_form(request: Request) -> bool:
    content_type = request.headers.get("content-type", "").lower()
    return content_type.startswith("application/x-www-form-urlencoded") or content_type.startswith(
        "multipart/form-data"
    )


async def extract_credential(request: Request, field: str) -> Tuple[Optional[str], bool]:
    """
    Pulls `field` out of a JSON or form-encoded body.
    Returns (value, is_form). A malformed body gives no value; it is bad input, not a server fault.
    """
    if _is_form(request):
        try:
            form = await request.form()
        except Exception as e:
            print(f"AUTH_UTILS: extract_credential - Unreadable form body: {type(e).__name__}")
            return None, True
        value = form.get(field)
        return (value if isinstance(value, str) else None), True

    body = await request.body()
    if not body:
        return None, False
    try:
        payload = json.loads(body)
    except ValueError:
        print("AUTH_UTILS: extract_credential - Request body is not valid JSON.")
        return None, False
    if not isinstance(payload, dict):
        return None, False
    value = payload.get(field)
    return (value if isinstance(value, str) else None), False


# --- Cookies ---

def cookie_is_secure(request: Request, settings: Settings) -> bool:
    """
    Secure when the deployment says it sits behind TLS, when this connection is TLS,
    or when a trusted proxy reports the original scheme as https.
    X-Forwarded-Proto from any other peer is ignored; clients control that header.
    """
    if settings.TLS_TERMINATED:
        return True
    if request.url.scheme == "https":
        return True
    peer = request.client.host if request.client else None
    if peer and peer in settings.TRUSTED_PROXY_HOSTS:
        forwarded = request.headers.get("x-forwarded-proto", "")
        return forwarded.split(",")[0].strip().lower() == "https"
    return False


def set_session_cookie(response: Response, request: Request, settings: Settings, record: SessionRecord) -> None:
    response.set_cookie(
        settings.SESSION_COOKIE_NAME,
        record.id,
        max_age=int(settings.SESSION_DURATION_SECONDS),
        path="/",
        httponly=True,
        secure=cookie_is_secure(request, settings),
        samesite="lax",
    )


def clear_session_cookie(response: Response, request: Request, settings: Settings) -> None:
    response.delete_cookie(
        settings.SESSION_COOKIE_NAME,
        path="/",
        httponly=True,
        secure=cookie_is_secure(request, settings),
        samesite="lax",
    )


# --- Dependencies ---

def get_settings_dep(request: Request) -> Settings:
    return request.app.state.settings


def get_token_store(request: Request) -> TokenStore:
    return request.app.state.token_store


def get_session_store(request: Request) -> SessionStore:
    return request.app.state.session_store


def get_credential_check(request: Request) -> CredentialCheck:
    return request.app.state.credential_check


def get_session_id(request: Request, settings: Settings = Depends(get_settings_dep)) -> Optional[str]:
    return request.cookies.get(settings.SESSION_COOKIE_NAME) or None


def require_session(
    session_id: Optional[str] = Depends(get_session_id),
    sessions: SessionStore = Depends(get_session_store),
) -> str:
    if not sessions.validate(session_id):
        raise Unauthorized()
    return session_id
