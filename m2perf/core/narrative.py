"""Optional narrative enrichment for synthesized plans."""
from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, Sequence

import httpx

from .models import Finding, Plan
from .utils import get_logger

if TYPE_CHECKING:  # pragma: no cover
    from .config import RuntimeConfig

logger = get_logger(__name__)

OPENAI_ENDPOINT = "https://api.openai.com/v1/chat/completions"
DEFAULT_MODEL = "gpt-4"
_USER_AGENT = "m2perf/0.3.0"
_SYSTEM_PROMPT = (
    "You are a Magento 2 performance optimization expert with deep knowledge of PHP, "
    "MySQL, Redis, Elasticsearch, and e-commerce best practices."
)


class NarrativeEnricher(Protocol):
    """Produces free-text commentary for a plan, or None."""

    def narrate(
        self, findings: Sequence[Finding], plan: Plan
    ) -> str | None:  # pragma: no cover - protocol
        ...


class RuleBasedEnricher:
    """Default enricher: the rule-based summary already says everything."""

    name = "rule-based"

    def narrate(self, findings: Sequence[Finding], plan: Plan) -> str | None:
        return None


def build_prompt(findings: Sequence[Finding]) -> str:
    lines = [
        "Analyze the following Magento 2 performance issues and provide specific recommendations:",
        "",
    ]
    for finding in findings:
        lines.append(f"[{finding.area} - {finding.priority_label}] {finding.title}")
        lines.append(f"Details: {finding.details}")
        lines.append("")
    lines.extend(
        [
            "Provide:",
            "1. Top 5 quick wins (can be implemented in < 1 day)",
            "2. Strategic improvements (1-4 weeks)",
            "3. Long-term optimizations (1+ months)",
            "4. Estimated performance improvement for each",
            "5. Implementation complexity (Low/Medium/High)",
        ]
    )
    return "\n".join(lines)


class OpenAIEnricher:
    """Asks a chat-completions endpoint for a narrative."""

    name = "openai"

    def __init__(
        self,
        api_key: str,
        *,
        endpoint: str = OPENAI_ENDPOINT,
        model: str = DEFAULT_MODEL,
        timeout: float = 30.0,
        client: httpx.Client | None = None,
    ) -> None:
        self.api_key = api_key
        self.endpoint = endpoint
        self.model = model
        self.timeout = timeout
        self._client = client

    def _payload(self, findings: Sequence[Finding]) -> dict[str, Any]:
        return {
            "model": self.model,
            "messages": [
                {"role": "system", "content": _SYSTEM_PROMPT},
                {"role": "user", "content": build_prompt(findings)},
            ],
            "temperature": 0.7,
            "max_tokens": 2000,
        }

    def narrate(self, findings: Sequence[Finding], plan: Plan) -> str | None:
        if not findings:
            return None
        client = self._client or httpx.Client(
            headers={"User-Agent": _USER_AGENT},
            timeout=self.timeout,
        )
        try:
            response = client.post(
                self.endpoint,
                json=self._payload(findings),
                headers={"Authorization": f"Bearer {self.api_key}"},
            )
            response.raise_for_status()
            data = response.json()
        finally:
            if self._client is None:
                client.close()
        content = data["choices"][0]["message"]["content"]
        if not isinstance(content, str) or not content.strip():
            raise ValueError("Narrative response contained no text")
        return content.strip()


class FallbackEnricher:
    """Runs ``primary`` and quietly falls back when it fails."""

    def __init__(self, primary: NarrativeEnricher, fallback: NarrativeEnricher) -> None:
        self.primary = primary
        self.fallback = fallback

    @property
    def name(self) -> str:
        return getattr(self.primary, "name", "custom")

    def narrate(self, findings: Sequence[Finding], plan: Plan) -> str | None:
        try:
            return self.primary.narrate(findings, plan)
        except Exception as exc:  # noqa: BLE001 - enrichment is optional
            logger.debug("Narrative enrichment unavailable, using rule-based plan: %s", exc)
            return self.fallback.narrate(findings, plan)


def select_enricher(config: "RuntimeConfig | None" = None) -> NarrativeEnricher:
    """Pick the enricher once at startup."""

    if config is None or not config.openai_api_key:
        return RuleBasedEnricher()
    logger.debug("Narrative enrichment enabled with model %s", config.openai_model)
    return FallbackEnricher(
        OpenAIEnricher(config.openai_api_key, model=config.openai_model),
        RuleBasedEnricher(),
    )


__all__ = [
    "FallbackEnricher",
    "NarrativeEnricher",
    "OpenAIEnricher",
    "RuleBasedEnricher",
    "build_prompt",
    "select_enricher",
]
