"""Plan synthesis: bucketing, ROI ranking and pattern insights.

The synthesizer consumes the findings of one run and never mutates them.
Every figure it emits is a heuristic estimate. In particular the 30/90 day
growth factors used for insights are illustrative extrapolations rather
than anything fitted to data.
"""
from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Callable, Iterable, List, Mapping, Sequence, Tuple

from .models import ActionPlanItem, Finding, Insight, Plan, Priority
from .narrative import NarrativeEnricher, RuleBasedEnricher
from .scoring import effort_score, impact_score, risk_level, roi_score, timeline_estimate
from .utils import get_logger

logger = get_logger(__name__)

GROWTH_30D = 1.5
GROWTH_90D = 2.2
ESTIMATED_IMPROVEMENT = "30-50%"


@dataclass(frozen=True)
class PlanSettings:
    """Bucket thresholds; defaults reproduce the documented behaviour."""

    quick_win_max_effort: int = 2
    strategic_max_effort: int = 5
    bucket_size: int = 5

    def __post_init__(self) -> None:
        if self.quick_win_max_effort < 0:
            raise ValueError("quick_win_max_effort must be >= 0")
        if self.strategic_max_effort < self.quick_win_max_effort:
            raise ValueError("strategic_max_effort must be >= quick_win_max_effort")
        if self.bucket_size < 1:
            raise ValueError("bucket_size must be >= 1")


@dataclass(frozen=True)
class PatternRule:
    """Fires when more than ``threshold`` findings share ``area``."""

    pattern: str
    area: str
    threshold: int
    impact: int
    description: str


PATTERN_RULES: Sequence[PatternRule] = (
    PatternRule(
        pattern="redis_misconfiguration",
        area="redis",
        threshold=2,
        impact=8,
        description="Multiple Redis configuration issues detected",
    ),
    PatternRule(
        pattern="security_vulnerabilities",
        area="security",
        threshold=3,
        impact=9,
        description="Multiple security vulnerabilities detected",
    ),
)

MITIGATION_STRATEGIES: Mapping[str, str] = {
    "redis_misconfiguration": "Implement comprehensive Redis optimization following best practices",
    "security_vulnerabilities": "Conduct security audit and implement hardening measures",
    "performance_bottleneck": "Profile application and optimize critical paths",
    "database_issues": "Optimize queries and implement proper indexing strategy",
}
_DEFAULT_MITIGATION = "Review and address identified issues systematically"

DependencyRule = Tuple[Callable[[Finding], bool], str]

DEPENDENCY_RULES: Sequence[DependencyRule] = (
    (
        lambda f: f.area == "redis" and "Configure Redis" in f.title,
        "Redis server installation",
    ),
    (
        lambda f: f.area in {"cache", "caching", "varnish"} and "Varnish" in f.title,
        "Varnish installation and configuration",
    ),
)

_GENERIC_STEPS = (
    "Review recommendation details",
    "Plan implementation approach",
    "Test in staging environment",
    "Deploy to production",
    "Monitor results",
)
_REDIS_LOCKING_STEPS = (
    "Backup current env.php configuration",
    "Edit app/etc/env.php",
    "Set disable_locking = 1 in Redis session configuration",
    "Clear cache: bin/magento cache:clean",
    "Test concurrent requests to verify improvement",
)
_OPCACHE_STEPS = (
    "Locate PHP configuration file (php.ini)",
    "Update OPcache settings as recommended",
    "Restart PHP-FPM service",
    "Verify settings with phpinfo()",
    "Monitor hit rate and memory usage",
)
_TWO_FACTOR_STEPS = (
    "Enable Magento_TwoFactorAuth module",
    "Configure 2FA providers in admin",
    "Test admin login with 2FA",
    "Document recovery procedures",
    "Train admin users",
)


def dependencies(finding: Finding) -> Tuple[str, ...]:
    return tuple(label for matches, label in DEPENDENCY_RULES if matches(finding))


def implementation_steps(finding: Finding) -> Tuple[str, ...]:
    title = finding.title.lower()
    if finding.area == "redis":
        if "locking" in title:
            return _REDIS_LOCKING_STEPS
        return ()
    if finding.area == "opcache":
        return _OPCACHE_STEPS
    if finding.area == "security":
        if "two-factor" in title or "2fa" in title:
            return _TWO_FACTOR_STEPS
        return ()
    return _GENERIC_STEPS


def summarize(findings: Sequence[Finding]) -> str:
    """Executive summary; the improvement range is a fixed estimate."""

    total = len(findings)
    if total == 0:
        return (
            "Performance analysis identified 0 issues (0 high priority). "
            "No action is required at this time."
        )
    high = sum(1 for finding in findings if finding.priority == Priority.HIGH)
    areas = Counter(finding.area for finding in findings)
    # most_common keeps first-seen order on ties
    top_area, top_count = areas.most_common(1)[0]
    return (
        f"Performance analysis identified {total} issues ({high} high priority) "
        f"across {len(areas)} areas; most issues are in {top_area} ({top_count}). "
        f"Estimated improvement potential if all recommendations are applied: "
        f"{ESTIMATED_IMPROVEMENT} (heuristic estimate, not a measurement)."
    )


class Synthesizer:
    """Turns an unordered set of findings into a ranked remediation plan."""

    def __init__(
        self,
        settings: PlanSettings | None = None,
        enricher: NarrativeEnricher | None = None,
    ) -> None:
        self.settings = settings or PlanSettings()
        self.enricher: NarrativeEnricher = enricher or RuleBasedEnricher()

    def action_item(self, finding: Finding) -> ActionPlanItem:
        impact = impact_score(finding)
        effort = effort_score(finding)
        return ActionPlanItem(
            finding=finding,
            impact_score=impact,
            effort_score=effort,
            roi_score=roi_score(finding, impact=impact, effort=effort),
            dependencies=dependencies(finding),
            timeline=timeline_estimate(effort),
            steps=implementation_steps(finding),
        )

    def bucket_for(self, effort: int) -> str:
        if effort <= self.settings.quick_win_max_effort:
            return "quick_wins"
        if effort <= self.settings.strategic_max_effort:
            return "strategic"
        return "long_term"

    def _top(self, items: List[ActionPlanItem]) -> Tuple[ActionPlanItem, ...]:
        # sorted() is stable, so equal impacts keep collector order
        ranked = sorted(items, key=lambda item: item.impact_score, reverse=True)
        return tuple(ranked[: self.settings.bucket_size])

    def build_plan(self, findings: Iterable[Finding]) -> Plan:
        items = [self.action_item(finding) for finding in findings]
        buckets: dict[str, List[ActionPlanItem]] = {
            "quick_wins": [],
            "strategic": [],
            "long_term": [],
        }
        for item in items:
            buckets[self.bucket_for(item.effort_score)].append(item)

        plan = Plan(
            quick_wins=self._top(buckets["quick_wins"]),
            strategic=self._top(buckets["strategic"]),
            long_term=self._top(buckets["long_term"]),
            summary=summarize([item.finding for item in items]),
        )
        logger.debug(
            "Plan built: %d quick wins, %d strategic, %d long term from %d findings",
            len(plan.quick_wins),
            len(plan.strategic),
            len(plan.long_term),
            len(items),
        )
        narrative = self.enricher.narrate([item.finding for item in items], plan)
        if narrative:
            plan = Plan(
                quick_wins=plan.quick_wins,
                strategic=plan.strategic,
                long_term=plan.long_term,
                summary=plan.summary,
                narrative=narrative,
            )
        return plan

    def rank_by_roi(self, findings: Iterable[Finding]) -> List[ActionPlanItem]:
        items = [self.action_item(finding) for finding in findings]
        return sorted(items, key=lambda item: item.roi_score, reverse=True)

    def predictive_insights(self, findings: Iterable[Finding]) -> List[Insight]:
        counts = Counter(finding.area for finding in findings)
        insights: List[Insight] = []
        for rule in PATTERN_RULES:
            if counts.get(rule.area, 0) <= rule.threshold:
                continue
            insights.append(
                Insight(
                    pattern=rule.pattern,
                    current_impact=rule.impact,
                    predicted_impact_30d=rule.impact * GROWTH_30D,
                    predicted_impact_90d=rule.impact * GROWTH_90D,
                    risk_level=risk_level(rule.impact),
                    mitigation_strategy=MITIGATION_STRATEGIES.get(rule.pattern, _DEFAULT_MITIGATION),
                    description=rule.description,
                )
            )
        return insights


__all__ = [
    "DEPENDENCY_RULES",
    "PATTERN_RULES",
    "PatternRule",
    "PlanSettings",
    "Synthesizer",
    "dependencies",
    "implementation_steps",
    "summarize",
]
