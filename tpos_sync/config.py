# ----------------------------------------------------------------
# Import configuration variables to be used throughout the project
# ----------------------------------------------------------------
import os
from dotenv import load_dotenv

# Load .env (allow container env to override file values)
load_dotenv(override=True)


def _rstrip_slash(s: str) -> str:
    return (s or "").rstrip("/")


def _get_bool(name: str, default: bool = False) -> bool:
    v = os.getenv(name)
    if v is None:
        return default
    return str(v).strip().lower() in {"1", "true", "yes", "on", "y"}


def _get_float(name: str, default: float) -> float:
    raw = os.getenv(name, "")
    if not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        return default


class Settings:
    # ── TPOS ─────────────────────────────────────────────────────────────────
    TPOS_BASE_URL: str = _rstrip_slash(os.getenv("TPOS_BASE_URL", "https://tomato.tpos.vn"))
    # Sent as x-tpos-lang on every call
    TPOS_LANG: str = os.getenv("TPOS_LANG", "vi")
    # token_type tag of the rows in tpos_credentials
    TPOS_TOKEN_TYPE: str = os.getenv("TPOS_TOKEN_TYPE", "tpos")
    TPOS_TIMEOUT: float = _get_float("TPOS_TIMEOUT", 30.0)
    TPOS_VERIFY_SSL: bool = _get_bool("TPOS_VERIFY_SSL", True)

    # ── Local store ──────────────────────────────────────────────────────────
    # Empty → sqlite+aiosqlite under DATA_DIR (see db._resolve_dsn)
    DATABASE_URL: str = os.getenv("DATABASE_URL", "")
    DATA_DIR: str = os.getenv("DATA_DIR", "./data")

    # Optional spreadsheet used to seed product_attribute_values
    ATTRIBUTE_CATALOG_PATH: str = os.getenv("ATTRIBUTE_CATALOG_PATH", "")

    # ── Admin API ────────────────────────────────────────────────────────────
    ADMIN_USER: str = os.getenv("ADMIN_USER", "admin")
    ADMIN_PASS: str = os.getenv("ADMIN_PASS", "changeme")

    # ── CORS ─────────────────────────────────────────────────────────────────
    # Comma-separated list in .env, e.g. "https://example.com, https://foo.bar"
    CORS_ORIGINS: list[str] = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]


settings = Settings()
