# src/channel_gate/main.py

import time
from typing import Callable, Optional

from fastapi import Depends, FastAPI, Request, Response, status
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates

from . import auth_utils
from .auth_utils import (
    CredentialCheck,
    get_credential_check,
    get_session_id,
    get_session_store,
    get_settings_dep,
    get_token_store,
    require_session,
)
from .catalog import load_channels
from .config import Settings, settings as default_settings
from .errors import NO_STORE_HEADERS, GateError, InvalidOrExpiredToken, NotFound, Unauthorized, gate_error_handler
from .session_data import ChannelListResponse, SessionStatusResponse, TokenResponse, to_epoch_ms
from .stores import SessionStore, TokenStore
from .sweeper import ExpirySweeper


def _json(content: dict, status_code: int = status.HTTP_200_OK) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=content, headers=NO_STORE_HEADERS)


async def _redeem(request: Request, field: str, check: CredentialCheck) -> Response:
    """
    Shared tail of every login flow: verify the credential with the configured
    strategy, then issue a session and set its cookie.
    Form posts get redirects, JSON posts get JSON.
    """
    app_settings: Settings = request.app.state.settings
    sessions: SessionStore = request.app.state.session_store

    credential, is_form = await auth_utils.extract_credential(request, field)
    if not check.verify(credential):
        print(f"MAIN: {request.url.path} - Credential rejected ({check.mode} mode).")
        if is_form:
            return RedirectResponse(url="/?error=invalid", status_code=status.HTTP_302_FOUND)
        raise InvalidOrExpiredToken()

    record = sessions.issue()
    print(f"MAIN: {request.url.path} - Credential accepted ({check.mode} mode), session issued.")
    if is_form:
        response = RedirectResponse(url="/iptv", status_code=status.HTTP_302_FOUND)
    else:
        response = _json(SessionStatusResponse(success=True, expiry=to_epoch_ms(record.expires_at)).model_dump())
    auth_utils.set_session_cookie(response, request, app_settings, record)
    return response


def create_app(settings: Optional[Settings] = None, clock: Callable[[], float] = time.time) -> FastAPI:
    settings = settings or default_settings

    app = FastAPI(
        title="ChannelGate",
        description="Issues single-use access tokens, exchanges them for session cookies and serves the channel catalog.",
        version="0.1.0",
    )

    # --- Owned state, injected into handlers through app.state ---
    app.state.settings = settings
    app.state.token_store = TokenStore(settings.TOKEN_DURATION_SECONDS, clock=clock)
    app.state.session_store = SessionStore(settings.SESSION_DURATION_SECONDS, clock=clock)
    app.state.credential_check = auth_utils.build_credential_check(settings, app.state.token_store)
    app.state.sweeper = ExpirySweeper(
        app.state.token_store, app.state.session_store, settings.SWEEP_INTERVAL_SECONDS
    )

    app.add_exception_handler(GateError, gate_error_handler)

    templates = Jinja2Templates(directory=settings.TEMPLATES_DIR)

    # --- Token exchange ---
    @app.get("/generate-token")
    async def generate_token(
        tokens: TokenStore = Depends(get_token_store),
        check: CredentialCheck = Depends(get_credential_check),
    ):
        if check.mode != "token":
            raise NotFound()
        record = tokens.issue()
        return _json(TokenResponse(token=record.value, expiry=to_epoch_ms(record.expires_at)).model_dump())

    @app.post("/validate-token")
    async def validate_token(request: Request, check: CredentialCheck = Depends(get_credential_check)):
        if check.mode != "token":
            raise NotFound()
        return await _redeem(request, "token", check)

    # --- Static access code ---
    @app.post("/login")
    async def login(request: Request, check: CredentialCheck = Depends(get_credential_check)):
        if check.mode != "password":
            raise NotFound()
        return await _redeem(request, "access_code", check)

    @app.post("/logout")
    async def logout(
        request: Request,
        session_id: Optional[str] = Depends(get_session_id),
        sessions: SessionStore = Depends(get_session_store),
        app_settings: Settings = Depends(get_settings_dep),
    ):
        if sessions.revoke(session_id):
            print("MAIN: /logout - Session revoked.")
        response = RedirectResponse(url="/", status_code=status.HTTP_302_FOUND)
        auth_utils.clear_session_cookie(response, request, app_settings)
        return response

    # --- Session ---
    @app.get("/check-session")
    async def check_session(
        session_id: str = Depends(require_session),
        sessions: SessionStore = Depends(get_session_store),
    ):
        expiry = sessions.expiry(session_id)
        if expiry is None:
            # Expired between the dependency and here.
            raise Unauthorized()
        return _json(SessionStatusResponse(success=True, expiry=to_epoch_ms(expiry)).model_dump())

    @app.post("/refresh-session")
    async def refresh_session(
        session_id: Optional[str] = Depends(get_session_id),
        sessions: SessionStore = Depends(get_session_store),
    ):
        expiry = sessions.refresh(session_id)
        if expiry is None:
            return _json({"success": False, "error": "Invalid session"}, status.HTTP_400_BAD_REQUEST)
        return _json(SessionStatusResponse(success=True, expiry=to_epoch_ms(expiry)).model_dump())

    # --- Protected content ---
    @app.get("/channels", dependencies=[Depends(require_session)])
    def channels(app_settings: Settings = Depends(get_settings_dep)):
        summaries = load_channels(app_settings.CHANNELS_FILE)
        return _json(ChannelListResponse(success=True, channels=summaries).model_dump())

    @app.get("/iptv", response_class=HTMLResponse)
    async def iptv(
        request: Request,
        session_id: Optional[str] = Depends(get_session_id),
        sessions: SessionStore = Depends(get_session_store),
    ):
        expiry = sessions.refresh(session_id)
        if expiry is None:
            return RedirectResponse(url="/", status_code=status.HTTP_302_FOUND)
        return templates.TemplateResponse(
            request,
            "iptv.html",
            {"refresh_interval_ms": _refresh_interval_ms(settings)},
            headers=NO_STORE_HEADERS,
        )

    # --- Public pages ---
    @app.get("/", response_class=HTMLResponse)
    @app.get("/index.html", response_class=HTMLResponse, include_in_schema=False)
    async def read_root(request: Request, error: Optional[str] = None):
        return templates.TemplateResponse(
            request,
            "login.html",
            {"auth_mode": settings.AUTH_MODE, "error": error == "invalid"},
            headers=NO_STORE_HEADERS,
        )

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    # --- Lifecycle ---
    @app.on_event("startup")
    async def startup_event():
        print("--- ChannelGate (FastAPI) Starting Up ---")
        print(f"Auth mode: {settings.AUTH_MODE}")
        print(f"Token duration: {settings.TOKEN_DURATION_SECONDS}s")
        print(f"Session duration: {settings.SESSION_DURATION_SECONDS}s")
        print(f"Sweep interval: {settings.SWEEP_INTERVAL_SECONDS}s")
        print(f"TLS terminated: {settings.TLS_TERMINATED}, trusted proxies: {settings.TRUSTED_PROXIES or 'none'}")
        print(f"Public dir: {settings.PUBLIC_DIR}")
        print(f"Channels file: {settings.CHANNELS_FILE}")
        print("-------------------------------------------")
        app.state.sweeper.start()

    @app.on_event("shutdown")
    async def shutdown_event():
        await app.state.sweeper.stop()

    # Mounted last so the routes above win; StaticFiles refuses paths outside the directory.
    app.mount("/", StaticFiles(directory=settings.PUBLIC_DIR), name="public")

    return app


def _refresh_interval_ms(settings: Settings) -> int:
    # Refresh well inside the session lifetime, at most every five minutes.
    return int(min(settings.SESSION_DURATION_SECONDS / 2, 5 * 60) * 1000)


app = create_app()
