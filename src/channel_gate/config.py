# src/channel_gate/config.py

from pathlib import Path
from typing import List, Literal, Optional

from dotenv import load_dotenv
from pydantic import SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# .env is at the project root, two levels up from src/channel_gate/
PACKAGE_DIR = Path(__file__).resolve().parent
PROJECT_ROOT_DIR = PACKAGE_DIR.parent.parent
ENV_FILE_PATH = PROJECT_ROOT_DIR / ".env"

if ENV_FILE_PATH.exists():
    load_dotenv(dotenv_path=ENV_FILE_PATH, override=True)
    print(f"ChannelGate: Loaded .env file from: {ENV_FILE_PATH}")
else:
    print(f"ChannelGate: .env file not found at {ENV_FILE_PATH}. Relying on environment variables.")


class Settings(BaseSettings):
    # === Server ===
    HOST: str = "0.0.0.0"
    PORT: int = 3000

    # === Authentication strategy ===
    # "token": anonymous clients fetch a single-use token and redeem it.
    # "password": clients redeem a shared access code kept outside the source tree.
    AUTH_MODE: Literal["token", "password"] = "token"
    ACCESS_CODE: Optional[SecretStr] = None

    # === Lifetimes ===
    TOKEN_DURATION_SECONDS: int = 5 * 60
    SESSION_DURATION_SECONDS: int = 24 * 60 * 60
    SWEEP_INTERVAL_SECONDS: float = 60 * 60

    # === Cookies ===
    SESSION_COOKIE_NAME: str = "sessionId"
    TLS_TERMINATED: bool = False
    # Peers allowed to tell us the original scheme via X-Forwarded-Proto.
    TRUSTED_PROXIES: str = ""

    # === Content ===
    PUBLIC_DIR: Path = PACKAGE_DIR / "static"
    CHANNELS_FILE: Path = PROJECT_ROOT_DIR / "data" / "channels.json"

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE_PATH),
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    @property
    def TEMPLATES_DIR(self) -> Path:
        return PACKAGE_DIR / "templates"

    @property
    def TRUSTED_PROXY_HOSTS(self) -> List[str]:
        return [host.strip() for host in self.TRUSTED_PROXIES.split(",") if host.strip()]

    @field_validator("TOKEN_DURATION_SECONDS", "SESSION_DURATION_SECONDS", "SWEEP_INTERVAL_SECONDS")
    @classmethod
    def check_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("durations and intervals must be positive")
        return v

    @model_validator(mode="after")
    def check_auth_mode(self) -> "Settings":
        if self.AUTH_MODE == "password":
            if self.ACCESS_CODE is None or not self.ACCESS_CODE.get_secret_value():
                raise ValueError("ACCESS_CODE must be set when AUTH_MODE is 'password'.")
        return self


try:
    settings = Settings()
except Exception as e:
    print(f"ChannelGate: Error instantiating Settings: {e}")
    raise
