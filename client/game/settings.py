"""Table client configuration via environment variables."""

from urllib.parse import urlsplit, urlunsplit

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

_WS_SCHEMES = {"http": "ws", "https": "wss"}


class ClientSettings(BaseSettings):
    model_config = {"env_prefix": "MAHJONG_"}

    server_url: str = Field(default="http://localhost:8080", min_length=1)
    ws_path: str = Field(default="/ws-mahjong/websocket", min_length=1)
    reconnect_delay_seconds: float = Field(default=5.0, gt=0)
    result_overlay_seconds: float = Field(default=5.0, gt=0)
    http_timeout_seconds: float = Field(default=10.0, gt=0)
    session_file: str = Field(default="~/.fzmahjong/session.json", min_length=1)
    log_dir: str | None = None

    @field_validator("server_url")
    @classmethod
    def validate_server_url(cls, v: str) -> str:
        parts = urlsplit(v)
        if parts.scheme not in _WS_SCHEMES or not parts.netloc:
            raise ValueError(f"server_url must be an http(s) URL with a host, got {v!r}")
        return v.rstrip("/")

    @field_validator("ws_path")
    @classmethod
    def validate_ws_path(cls, v: str) -> str:
        if not v.startswith("/"):
            raise ValueError("ws_path must start with '/'")
        return v

    @property
    def ws_url(self) -> str:
        """WebSocket URL of the game channel, derived from server_url."""
        parts = urlsplit(self.server_url)
        path = parts.path.rstrip("/") + self.ws_path
        return urlunsplit((_WS_SCHEMES[parts.scheme], parts.netloc, path, "", ""))

    @property
    def host(self) -> str:
        """Value of the STOMP host header."""
        return urlsplit(self.server_url).hostname or "/"
