import pytest

from conftest import make_finding
from m2perf.core.models import Finding, Plan
from m2perf.core.synthesis import PlanSettings, Synthesizer, dependencies, implementation_steps, summarize


class StaticEnricher:
    name = "static"

    def __init__(self, text: str | None) -> None:
        self.text = text
        self.calls = 0

    def narrate(self, findings, plan: Plan) -> str | None:
        self.calls += 1
        return self.text


def test_empty_plan() -> None:
    plan = Synthesizer().build_plan([])
    assert plan.is_empty
    assert "0 issues" in plan.summary
    assert plan.narrative is None


def test_buckets_follow_effort() -> None:
    quick = make_finding(title="Enable full page cache", area="caching")
    strategic = make_finding(title="Review high server load", area="system")
    long_term = make_finding(title="Implement full-text search", area="search")

    plan = Synthesizer().build_plan([long_term, strategic, quick])

    assert [item.finding for item in plan.quick_wins] == [quick]
    assert [item.finding for item in plan.strategic] == [strategic]
    assert [item.finding for item in plan.long_term] == [long_term]


def test_bucket_is_sorted_by_impact_and_capped() -> None:
    findings = [make_finding(title=f"Enable feature {n}", priority=3) for n in range(6)]
    low = make_finding(title="Enable minor tweak", priority=1)
    redis = make_finding(title="Enable Redis thing", area="redis", priority=3)

    plan = Synthesizer().build_plan([low, *findings, redis])

    titles = [item.finding.title for item in plan.quick_wins]
    assert len(titles) == 5
    assert titles[0] == "Enable Redis thing"
    # equal impacts keep collector order
    assert titles[1:] == [f"Enable feature {n}" for n in range(4)]
    assert "Enable minor tweak" not in titles


def test_custom_settings_move_thresholds() -> None:
    install = make_finding(title="Install phpredis extension", area="redis")
    plan = Synthesizer(PlanSettings(quick_win_max_effort=3, bucket_size=1)).build_plan([install])
    assert [item.finding for item in plan.quick_wins] == [install]


@pytest.mark.parametrize(
    "kwargs",
    [{"bucket_size": 0}, {"quick_win_max_effort": -1}, {"quick_win_max_effort": 4, "strategic_max_effort": 3}],
)
def test_plan_settings_validation(kwargs: dict) -> None:
    with pytest.raises(ValueError):
        PlanSettings(**kwargs)


def test_action_item_fields() -> None:
    finding = make_finding(title="Configure Redis for session storage", area="redis", priority=3)
    item = Synthesizer().action_item(finding)
    assert item.impact_score == 15
    assert item.effort_score == 2
    assert item.roi_score == pytest.approx(7.5)
    assert item.timeline == "1-2 days"
    assert item.dependencies == ("Redis server installation",)
    assert item.finding is finding


def test_dependencies() -> None:
    varnish = make_finding(title="Configure Varnish for full page cache", area="caching")
    assert dependencies(varnish) == ("Varnish installation and configuration",)
    assert dependencies(make_finding(title="Enable OPcache", area="opcache")) == ()


def test_implementation_steps() -> None:
    locking = make_finding(title="Disable Redis session locking", area="redis")
    assert implementation_steps(locking)[0] == "Backup current env.php configuration"
    assert implementation_steps(make_finding(title="Switch to LZ4 compression", area="redis")) == ()
    assert "Restart PHP-FPM service" in implementation_steps(make_finding(title="Enable OPcache", area="opcache"))
    assert implementation_steps(make_finding(title="Enable Two-Factor Auth", area="security"))[0] == (
        "Enable Magento_TwoFactorAuth module"
    )
    assert implementation_steps(make_finding(area="system"))[0] == "Review recommendation details"


def test_summary_counts() -> None:
    findings = [
        make_finding(area="redis", priority=3),
        make_finding(area="redis", priority=3),
        make_finding(area="system", priority=1),
    ]
    summary = summarize(findings)
    assert "identified 3 issues (2 high priority)" in summary
    assert "across 2 areas" in summary
    assert "most issues are in redis (2)" in summary
    assert "heuristic estimate" in summary


def test_rank_by_roi_is_descending() -> None:
    review = make_finding(title="Review high server load", area="system", priority=3)
    enable = make_finding(title="Enable OPcache", area="opcache", priority=3)
    implement = make_finding(title="Implement search", area="search", priority=3)

    ranked = Synthesizer().rank_by_roi([implement, review, enable])

    assert [item.finding for item in ranked] == [enable, review, implement]
    assert [round(item.roi_score, 2) for item in ranked] == [10.0, 3.33, 1.43]


def test_redis_pattern_insight() -> None:
    findings = [make_finding(title=f"Redis {n}", area="redis") for n in range(3)]
    insights = Synthesizer().predictive_insights(findings)

    assert len(insights) == 1
    insight = insights[0]
    assert insight.pattern == "redis_misconfiguration"
    assert insight.current_impact == 8
    assert insight.predicted_impact_30d == pytest.approx(12.0)
    assert insight.predicted_impact_90d == pytest.approx(17.6)
    assert insight.risk_level == "Critical"
    assert "Redis" in insight.mitigation_strategy


def test_insight_thresholds() -> None:
    synthesizer = Synthesizer()
    two_redis = [make_finding(title=f"Redis {n}", area="redis") for n in range(2)]
    three_security = [make_finding(title=f"Header {n}", area="security") for n in range(3)]
    assert synthesizer.predictive_insights(two_redis + three_security) == []

    four_security = three_security + [make_finding(title="Header 3", area="security")]
    insights = synthesizer.predictive_insights(four_security)
    assert [insight.pattern for insight in insights] == ["security_vulnerabilities"]
    assert insights[0].current_impact == 9


def test_narrative_is_attached_when_available() -> None:
    enricher = StaticEnricher("Start with Redis.")
    plan = Synthesizer(enricher=enricher).build_plan([make_finding()])
    assert plan.narrative == "Start with Redis."
    assert enricher.calls == 1

    plan = Synthesizer(enricher=StaticEnricher(None)).build_plan([make_finding()])
    assert plan.narrative is None


def test_plan_does_not_mutate_findings() -> None:
    findings = [make_finding(title=f"Enable {n}") for n in range(3)]
    snapshot: list[Finding] = list(findings)
    Synthesizer().build_plan(findings)
    Synthesizer().rank_by_roi(findings)
    assert findings == snapshot
