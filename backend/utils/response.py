# backend/utils/response.py
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def success_response(data: Any) -> Dict[str, Any]:
    return {
        "success": True,
        "data": data,
        "metadata": {"timestamp": _timestamp()},
    }


def error_response(
    message: str,
    code: Optional[str] = None,
    details: Optional[List[Dict[str, Any]]] = None,
) -> Dict[str, Any]:
    error: Dict[str, Any] = {"message": message}
    if code:
        error["code"] = code
    if details is not None:
        error["details"] = details
    return {"success": False, "error": error}
