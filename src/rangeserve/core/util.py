from __future__ import annotations
from typing import Dict, Any, Iterable
from .model import Response


def decision_name(response: Response) -> str:
    return type(response.decision).__name__


def response_asdict(res: Response, *, fields: Iterable[str] | None = None) -> Dict[str, Any]:
    """Return a JSON-serialisable dict of a Response, optionally filtered to some keys."""
    window = res.window
    payload: Dict[str, Any] = {
        "decision": decision_name(res),
        "status": res.status,
        "headers": dict(res.headers),
        "window": None if window is None else {"start": window.start, "end": window.end, "length": window.length},
    }
    if fields:
        wanted = set(fields)
        payload = {k: v for k, v in payload.items() if k in wanted}
    return payload
