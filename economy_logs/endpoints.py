"""Admin access to the log files written by FileLogger."""
from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import PlainTextResponse
from pathlib import Path
from datetime import datetime
from typing import Annotated, List, Optional

from economy_components import settings

router = APIRouter(prefix="/admin/logs", tags=["logs"])

ALLOWED_LOG_TYPES = ("server", "economy", "auth", "transactions")
LOG_TYPE_PATTERN = "^(" + "|".join(ALLOWED_LOG_TYPES) + ")$"
LogType = Annotated[str, Query(pattern=LOG_TYPE_PATTERN)]


def get_log_path(log_type: str) -> Path:
    return Path(settings.LOG_DIR) / f"{log_type}.log"


def read_log(log_type: str) -> Optional[List[str]]:
    path = get_log_path(log_type)
    if not path.exists():
        return None
    return path.read_text().splitlines()


def missing(log_type: str) -> dict:
    return {"lines": [], "error": f"No {log_type} log file", "log_type": log_type}


@router.get("/tail")
async def tail_logs(log_type: LogType = "transactions", lines: int = Query(50, ge=1, le=500)):
    """Last N lines, newest last."""
    all_lines = read_log(log_type)
    if all_lines is None:
        return missing(log_type)
    return {"lines": all_lines[-lines:], "count": len(all_lines), "log_type": log_type}


@router.get("/head")
async def head_logs(log_type: LogType = "transactions", lines: int = Query(50, ge=1, le=500)):
    all_lines = read_log(log_type)
    if all_lines is None:
        return missing(log_type)
    return {"lines": all_lines[:lines], "count": len(all_lines), "log_type": log_type}


@router.get("/search")
async def search_logs(
    log_type: LogType = "transactions",
    level: Optional[str] = None,
    contains: Optional[str] = None,
    limit: int = Query(100, ge=1, le=1000),
):
    """Lines matching a level and/or a case-insensitive substring."""
    all_lines = read_log(log_type)
    if all_lines is None:
        return missing(log_type)

    needle = contains.lower() if contains else None
    matches = [
        line for line in all_lines
        if (not level or f'"level": "{level}"' in line)
        and (not needle or needle in line.lower())
    ]
    return {"lines": matches[:limit], "count": len(matches[:limit]), "log_type": log_type}


@router.get("/available")
async def list_available_logs():
    log_dir = Path(settings.LOG_DIR)
    if not log_dir.exists():
        return {"logs": []}

    return {"logs": [
        {
            "name": f.stem,
            "size_bytes": f.stat().st_size,
            "modified": datetime.fromtimestamp(f.stat().st_mtime).isoformat(),
        }
        for f in sorted(log_dir.glob("*.log"))
    ]}


@router.get("/raw/{log_type}")
async def get_raw_log(log_type: str):
    if log_type not in ALLOWED_LOG_TYPES:
        raise HTTPException(400, f"Invalid log type. Allowed: {list(ALLOWED_LOG_TYPES)}")

    path = get_log_path(log_type)
    if not path.exists():
        raise HTTPException(404, f"No {log_type} log file")
    return PlainTextResponse(path.read_text())
