"""Storefront HTTP response header checks."""
from __future__ import annotations

from typing import Dict, Tuple
from urllib.parse import urlparse

import httpx

from ..core.collector import Collector
from ..core.context import RunContext, SourceError
from ..core.models import Priority
from ..core.utils import get_logger

logger = get_logger(__name__)

_USER_AGENT = "m2perf/0.3.0"
_EXPECTED_HEADERS = {
    "strict-transport-security": "add_header Strict-Transport-Security \"max-age=31536000; includeSubDomains\" always;",
    "content-security-policy": "Enable Magento_Csp in restrict mode and define a strict policy.",
    "x-frame-options": "Set to SAMEORIGIN: bin/magento config:set web/secure/x_frame_options SAMEORIGIN",
    "x-content-type-options": "add_header X-Content-Type-Options nosniff always;",
    "referrer-policy": "add_header Referrer-Policy strict-origin-when-cross-origin always;",
}


def _fetch_headers(url: str) -> Tuple[int, Dict[str, str]]:
    with httpx.Client(
        headers={"User-Agent": _USER_AGENT},
        follow_redirects=True,
        timeout=10.0,
    ) as client:
        response = client.head(url)
        if response.status_code >= 400:
            response = client.get(url)
        return response.status_code, {k.lower(): v for k, v in response.headers.items()}


def _evaluate_header(name: str, value: str | None) -> Tuple[bool, bool]:
    if not value:
        return False, False
    lower = value.lower()
    if name == "strict-transport-security":
        weak = "includesubdomains" not in lower or "max-age" not in lower
        return True, weak
    if name == "content-security-policy":
        weak = "unsafe-inline" in lower or "*" in lower
        return True, weak
    if name == "x-frame-options":
        weak = lower not in {"deny", "sameorigin"}
        return True, weak
    if name == "x-content-type-options":
        return True, lower != "nosniff"
    if name == "referrer-policy":
        weak = lower in {"unsafe-url", "no-referrer-when-downgrade", "origin"}
        return True, weak
    return True, False


def _base_url(context: RunContext) -> str | None:
    if context.base_url:
        return context.base_url
    try:
        url = context.env_value("system", "default", "web", "secure", "base_url")
        url = url or context.env_value("system", "default", "web", "unsecure", "base_url")
    except SourceError as exc:
        logger.debug("Storefront URL unavailable: %s", exc)
        return None
    return str(url) if url else None


class HttpHeadersInspector:
    """Requests the storefront once and reports missing or weak headers."""

    name = "headers"
    area = "security"

    def run(self, collector: Collector, context: RunContext) -> None:
        url = _base_url(context)
        if not url:
            logger.info("No storefront URL configured; skipping header checks")
            return
        parsed = urlparse(url)
        if not parsed.hostname:
            raise ValueError(f"Invalid storefront URL '{url}'")

        try:
            status, headers = _fetch_headers(url)
        except httpx.HTTPError as exc:
            collector.submit(
                self.area,
                "Review storefront availability",
                Priority.HIGH,
                f"Could not fetch {url}: {exc}",
            )
            return

        if parsed.scheme != "https":
            collector.submit(
                self.area,
                "Configure HTTPS for the storefront base URL",
                Priority.HIGH,
                f"The storefront is served from {url}.\n"
                "bin/magento config:set web/secure/use_in_frontend 1",
                explanation="Without TLS, sessions and customer data travel in clear text.",
            )

        for header, remedy in _EXPECTED_HEADERS.items():
            present, weak = _evaluate_header(header, headers.get(header))
            if not present:
                collector.submit(
                    self.area,
                    f"Configure {header} header",
                    Priority.MEDIUM,
                    f"The {header} header is absent from {url}.\n{remedy}",
                    metadata={"url": url, "status": status, "header": header},
                )
            elif weak:
                collector.submit(
                    self.area,
                    f"Review weak {header} policy",
                    Priority.LOW,
                    f"The {header} policy appears weak: {headers.get(header)}\n{remedy}",
                    metadata={"url": url, "status": status, "header": header},
                )


__all__ = ["HttpHeadersInspector"]
