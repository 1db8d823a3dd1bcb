"""Server configuration: reads settings from environment variables.

All settings have defaults suited to local development: an in-memory
gateway and in-memory drafts.
"""

import os
from dataclasses import dataclass, field

GATEWAY_MEMORY = "memory"
GATEWAY_SQL = "sql"


@dataclass(frozen=True)
class ServerSettings:
    """Immutable server configuration read from environment at startup."""

    # Network
    host: str = "0.0.0.0"
    port: int = 8080

    # CORS - comma-separated origins, or "*" for wide-open dev mode
    cors_origins: list[str] = field(default_factory=lambda: ["*"])

    # Logging
    log_level: str = "INFO"

    # Remote store: "memory" (preview, nothing persisted) or "sql"
    gateway: str = GATEWAY_MEMORY

    # JSON file holding local drafts (None → drafts live in memory)
    draft_path: str | None = None

    # Built-in questions/teams directory (None → packaged data)
    data_dir: str | None = None

    # When set, requests carrying X-User-ID must also carry a matching
    # X-Proxy-Secret, proving the identity came from the trusted gateway.
    trusted_proxy_secret: str | None = None

    # Super-admin email, accepted without an admin_users row
    admin_email: str | None = None

    # Survey sessions untouched for this long are evicted from memory
    session_idle_minutes: int = 60


def load_settings() -> ServerSettings:
    """Build settings from environment variables."""
    raw_origins = os.getenv("SERVER_CORS_ORIGINS", "*")
    origins = [o.strip() for o in raw_origins.split(",") if o.strip()]

    gateway = os.getenv("SURVEY_GATEWAY", GATEWAY_MEMORY).strip().lower()
    if gateway not in (GATEWAY_MEMORY, GATEWAY_SQL):
        raise ValueError(f"SURVEY_GATEWAY must be 'memory' or 'sql', got {gateway!r}")

    return ServerSettings(
        host=os.getenv("SERVER_HOST", "0.0.0.0"),
        port=int(os.getenv("SERVER_PORT", "8080")),
        cors_origins=origins,
        log_level=os.getenv("SERVER_LOG_LEVEL", "INFO").upper(),
        gateway=gateway,
        draft_path=os.getenv("SURVEY_DRAFT_PATH") or None,
        data_dir=os.getenv("SURVEY_DATA_DIR") or None,
        trusted_proxy_secret=os.getenv("TRUSTED_PROXY_SECRET") or None,
        admin_email=os.getenv("ADMIN_EMAIL") or None,
        session_idle_minutes=int(os.getenv("SURVEY_SESSION_IDLE_MINUTES", "60")),
    )
