import json
import logging
import logging.handlers
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

from beanconfig.core.config import DEFAULT_AUDIT_PATH

_MAX_BYTES = 10 * 1024 * 1024
_BACKUP_COUNT = 5

_handler_cache: Dict[str, logging.Handler] = {}


def _now_ms() -> int:
    return int(time.time() * 1000)


def _get_rotating_handler(audit_path: Path) -> logging.Handler:
    key = str(audit_path.resolve())
    if key not in _handler_cache:
        audit_path.parent.mkdir(parents=True, exist_ok=True)
        h = logging.handlers.RotatingFileHandler(
            str(audit_path),
            maxBytes=_MAX_BYTES,
            backupCount=_BACKUP_COUNT,
            encoding="utf-8",
        )
        h.setFormatter(logging.Formatter("%(message)s"))
        _handler_cache[key] = h
    return _handler_cache[key]


def audit_operation(
    operation: str,
    outcome: str,
    actor: Optional[str],
    bean_ids: List[str],
    code: Optional[int] = None,
    extra: Optional[Dict[str, Any]] = None,
    audit_path: Path = DEFAULT_AUDIT_PATH,
) -> None:
    """Append one JSON line per admin write to the audit log."""
    record: Dict[str, Any] = {
        "ts_ms": _now_ms(),
        "type": "admin_operation",
        "operation": operation,
        "outcome": outcome,
        "actor": actor,
        "beans": bean_ids,
    }
    if code is not None:
        record["code"] = code
    if extra:
        record["extra"] = extra

    line = json.dumps(record, separators=(",", ":"), ensure_ascii=False)

    handler = _get_rotating_handler(audit_path)
    log_record = logging.LogRecord(
        name="beanconfig.audit",
        level=logging.INFO,
        pathname="",
        lineno=0,
        msg=line,
        args=(),
        exc_info=None,
    )
    handler.emit(log_record)
    handler.flush()


def read_audit(audit_path: Path = DEFAULT_AUDIT_PATH, limit: int = 100) -> List[Dict[str, Any]]:
    """Most recent audit records, oldest first. Unparseable lines are skipped."""
    if not audit_path.exists():
        return []
    out: List[Dict[str, Any]] = []
    for line in audit_path.read_text(encoding="utf-8").splitlines()[-limit:]:
        line = line.strip()
        if not line:
            continue
        try:
            out.append(json.loads(line))
        except json.JSONDecodeError:
            continue
    return out
