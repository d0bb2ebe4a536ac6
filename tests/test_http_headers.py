import httpx
import pytest

from m2perf.core.collector import Collector
from m2perf.core.models import Priority
from m2perf.inspectors import http_headers
from m2perf.inspectors.http_headers import HttpHeadersInspector

GOOD_HEADERS = {
    "strict-transport-security": "max-age=31536000; includeSubDomains",
    "content-security-policy": "default-src 'self'",
    "x-frame-options": "SAMEORIGIN",
    "x-content-type-options": "nosniff",
    "referrer-policy": "strict-origin-when-cross-origin",
}


def test_detects_missing_and_weak_headers(
    monkeypatch: pytest.MonkeyPatch, make_context, collector: Collector
) -> None:
    def fake_fetch(url: str):
        return 200, {"strict-transport-security": "max-age=100"}

    monkeypatch.setattr(http_headers, "_fetch_headers", fake_fetch)
    HttpHeadersInspector().run(collector, make_context(base_url="https://shop.example.com"))

    findings = {f.title: f for f in collector.all()}
    assert findings["Review weak strict-transport-security policy"].priority is Priority.LOW
    assert findings["Configure content-security-policy header"].priority is Priority.MEDIUM
    assert "Configure x-frame-options header" in findings
    assert all(f.area == "security" for f in findings.values())
    assert len(findings) == 5


def test_flags_weak_csp(monkeypatch: pytest.MonkeyPatch, make_context, collector: Collector) -> None:
    def fake_fetch(url: str):
        return 200, dict(GOOD_HEADERS, **{"content-security-policy": "default-src * 'unsafe-inline'"})

    monkeypatch.setattr(http_headers, "_fetch_headers", fake_fetch)
    HttpHeadersInspector().run(collector, make_context(base_url="https://shop.example.com"))
    assert [f.title for f in collector.all()] == ["Review weak content-security-policy policy"]


def test_plain_http_storefront(monkeypatch: pytest.MonkeyPatch, make_context, collector: Collector) -> None:
    monkeypatch.setattr(http_headers, "_fetch_headers", lambda url: (200, dict(GOOD_HEADERS)))
    HttpHeadersInspector().run(collector, make_context(base_url="http://shop.example.com"))

    (finding,) = collector.all()
    assert finding.title == "Configure HTTPS for the storefront base URL"
    assert finding.priority is Priority.HIGH


def test_unreachable_storefront(monkeypatch: pytest.MonkeyPatch, make_context, collector: Collector) -> None:
    def fake_fetch(url: str):
        raise httpx.ConnectError("connection refused")

    monkeypatch.setattr(http_headers, "_fetch_headers", fake_fetch)
    HttpHeadersInspector().run(collector, make_context(base_url="https://shop.example.com"))

    (finding,) = collector.all()
    assert finding.title == "Review storefront availability"
    assert "connection refused" in finding.details


def test_base_url_from_env_php(monkeypatch: pytest.MonkeyPatch, make_context, collector: Collector) -> None:
    requested = []

    def fake_fetch(url: str):
        requested.append(url)
        return 200, dict(GOOD_HEADERS)

    monkeypatch.setattr(http_headers, "_fetch_headers", fake_fetch)
    env = {"system": {"default": {"web": {"unsecure": {"base_url": "https://m2.example.com/"}}}}}
    HttpHeadersInspector().run(collector, make_context(env=env))

    assert requested == ["https://m2.example.com/"]
    assert collector.all() == []


def test_no_storefront_url(monkeypatch: pytest.MonkeyPatch, make_context, collector: Collector) -> None:
    def fake_fetch(url: str):
        raise AssertionError("no request expected")

    monkeypatch.setattr(http_headers, "_fetch_headers", fake_fetch)
    HttpHeadersInspector().run(collector, make_context())
    assert len(collector) == 0


def test_invalid_storefront_url(make_context, collector: Collector) -> None:
    with pytest.raises(ValueError):
        HttpHeadersInspector().run(collector, make_context(base_url="not a url"))
