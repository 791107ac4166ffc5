"""Check how a remote server handles range and revalidation requests."""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from loguru import logger

from .io.http_async import AsyncRemoteFile
from .io.http_sync import RemoteFile, parse_content_range

PROBE_BYTES = 16


@dataclass(slots=True)
class ProbeCheck:
    name: str
    passed: bool
    detail: str


@dataclass(slots=True)
class ProbeReport:
    url: str
    size: Optional[int]
    etag: Optional[str]
    accept_ranges: bool
    checks: List[ProbeCheck] = field(default_factory=list)
    requests_made: int = 0

    @property
    def success(self) -> bool:
        return bool(self.checks) and all(c.passed for c in self.checks)

    def asdict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "success": self.success,
            "size": self.size,
            "etag": self.etag,
            "accept_ranges": self.accept_ranges,
            "checks": [{"name": c.name, "passed": c.passed, "detail": c.detail} for c in self.checks],
            "requests_made": self.requests_made,
        }


def _plan(size: Optional[int], etag: Optional[str]) -> List[Tuple[str, Dict[str, str]]]:
    """The probe requests to send, as (check name, request headers)."""
    if not size:
        return []
    n = min(PROBE_BYTES, size)
    plan = [
        ("partial", {"Range": f"bytes=0-{n - 1}"}),
        ("suffix", {"Range": f"bytes=-{n}"}),
        ("unsatisfiable", {"Range": f"bytes={size}-"}),
    ]
    if etag:
        plan.append(("revalidation", {"If-None-Match": etag, "Range": "bytes=0-0"}))
    return plan


def _evaluate(name: str, size: int, response) -> ProbeCheck:
    """Judge one probe response; works with requests and httpx responses alike."""
    status = response.status_code
    content_range = response.headers.get("content-range")
    n = min(PROBE_BYTES, size)

    if name in ("partial", "suffix"):
        start = 0 if name == "partial" else size - n
        expected = (start, start + n - 1, size)
        if status != 206:
            return ProbeCheck(name, False, f"expected 206, got {status}")
        if parse_content_range(content_range) != expected:
            return ProbeCheck(name, False, f"unexpected Content-Range {content_range!r}")
        if len(response.content) != n:
            return ProbeCheck(name, False, f"expected {n} bytes, got {len(response.content)}")
        return ProbeCheck(name, True, f"206 {content_range}")

    if name == "unsatisfiable":
        if status != 416:
            return ProbeCheck(name, False, f"expected 416, got {status}")
        if content_range != f"bytes */{size}":
            return ProbeCheck(name, False, f"unexpected Content-Range {content_range!r}")
        return ProbeCheck(name, True, f"416 {content_range}")

    if status != 304:
        return ProbeCheck(name, False, f"expected 304, got {status}")
    return ProbeCheck(name, True, "304 Not Modified")


def _start_report(url: str, remote) -> ProbeReport:
    report = ProbeReport(url, remote.content_length, remote.etag, remote.accept_ranges)
    report.checks.append(ProbeCheck(
        "accept-ranges", remote.accept_ranges,
        "Accept-Ranges: bytes" if remote.accept_ranges else "server does not advertise byte ranges"))
    if not remote.content_length:
        report.checks.append(ProbeCheck("size", False, "no usable Content-Length on HEAD"))
    return report


def probe(url: str) -> ProbeReport:
    """Run the probe with requests."""
    with RemoteFile(url) as remote:
        report = _start_report(url, remote)
        for name, headers in _plan(remote.content_length, remote.etag):
            response = remote.get(headers)
            report.checks.append(_evaluate(name, remote.content_length, response))
        report.requests_made = remote.requests_made

    logger.info("Probed {}: {}", url, "ok" if report.success else "failed")
    return report


async def probe_async(url: str) -> ProbeReport:
    """Run the probe with httpx."""
    async with AsyncRemoteFile(url) as remote:
        report = _start_report(url, remote)
        for name, headers in _plan(remote.content_length, remote.etag):
            response = await remote.get(headers)
            report.checks.append(_evaluate(name, remote.content_length, response))
        report.requests_made = remote.requests_made

    logger.info("Probed {}: {}", url, "ok" if report.success else "failed")
    return report
