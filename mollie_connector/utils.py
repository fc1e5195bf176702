import shlex
from fastapi import Header, HTTPException
from typing import Optional
import httpx
from .config import get_settings


def require_service_api_key(x_api_key: Optional[str] = Header(default=None)):
    if x_api_key != get_settings().service_api_key:
        raise HTTPException(status_code=401, detail="Invalid X-API-KEY")
    return True


def as_curl(request: httpx.Request) -> str:
    """Command line that replays `request` with curl."""
    parts = ["curl", "-X", request.method]
    for name, value in request.headers.items():
        if name.lower() == "authorization":
            value = "Bearer ***"
        parts += ["-H", f"{name}: {value}"]
    body = request.content
    if body:
        parts += ["--data", body.decode("utf-8", errors="replace")]
    parts.append(str(request.url))
    return " ".join(shlex.quote(p) for p in parts)
