from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ROOT_DIR = Path(__file__).resolve().parents[2]
load_dotenv(dotenv_path=ROOT_DIR / ".env")


def _get_env(*keys: str, default: str | None = None) -> str | None:
    for k in keys:
        v = os.getenv(k)
        if v is not None and str(v).strip() != "":
            return v.strip()
    return default


def _get_int(*keys: str, default: int) -> int:
    v = _get_env(*keys, default=None)
    if v is None:
        return default
    return int(v)


def _get_float(*keys: str, default: float) -> float:
    v = _get_env(*keys, default=None)
    if v is None:
        return default
    return float(v)


def _get_bool(*keys: str, default: bool) -> bool:
    v = _get_env(*keys, default=None)
    if v is None:
        return default
    return v.lower() not in ("0", "false", "no", "off")


@dataclass(frozen=True)
class Settings:
    db_path: str
    seed_catalog: bool
    shipping_fee: float
    flat_tax: float
    recent_limit: int
    admin_emails: tuple[str, ...]
    debug: bool


settings = Settings(
    db_path=_get_env(
        "MARKETPLACE_DB_PATH", "DB_PATH", default=str(ROOT_DIR / "data" / "marketplace.sqlite")
    )
    or "",
    seed_catalog=_get_bool("MARKETPLACE_SEED_CATALOG", default=True),
    shipping_fee=_get_float("MARKETPLACE_SHIPPING_FEE", default=0.0),
    flat_tax=_get_float("MARKETPLACE_FLAT_TAX", default=0.0),
    recent_limit=_get_int("MARKETPLACE_RECENT_LIMIT", default=10),
    admin_emails=tuple(
        e.strip().lower()
        for e in (_get_env("MARKETPLACE_ADMIN_EMAILS", default="") or "").split(",")
        if e.strip()
    ),
    debug=_get_bool("DEBUG", default=False),
)

if settings.shipping_fee < 0 or settings.flat_tax < 0:
    raise RuntimeError("MARKETPLACE_SHIPPING_FEE and MARKETPLACE_FLAT_TAX must be >= 0")
