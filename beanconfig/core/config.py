from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


DEFAULT_AUDIT_PATH = Path(".beanconfig") / "audit.log"


def _env_int(key: str, default: int) -> int:
    try:
        return int(os.getenv(key, str(default)))
    except (TypeError, ValueError):
        return default


def _env_bool(key: str, default: bool) -> bool:
    raw = os.getenv(key)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes")


@dataclass(frozen=True)
class AdminConfig:
    env: str = "dev"
    schema_dir: Optional[Path] = None

    # successor hops the store expands around each bean to validate
    validate_depth: int = 2

    audit_enabled: bool = True
    audit_path: Path = DEFAULT_AUDIT_PATH

    host: str = "0.0.0.0"
    port: int = 8001

    @classmethod
    def from_env(cls) -> "AdminConfig":
        schema_dir = (os.getenv("BEANCONFIG_SCHEMA_DIR") or "").strip()
        audit_path = (os.getenv("BEANCONFIG_AUDIT_PATH") or "").strip()
        depth = _env_int("BEANCONFIG_VALIDATE_DEPTH", 2)
        depth = max(0, min(10, depth))

        return cls(
            env=(os.getenv("BEANCONFIG_ENV") or "dev").strip().lower(),
            schema_dir=Path(schema_dir) if schema_dir else None,
            validate_depth=depth,
            audit_enabled=_env_bool("BEANCONFIG_AUDIT_ENABLED", True),
            audit_path=Path(audit_path) if audit_path else DEFAULT_AUDIT_PATH,
            host=os.getenv("BEANCONFIG_HOST", "0.0.0.0"),
            port=_env_int("BEANCONFIG_PORT", 8001),
        )
