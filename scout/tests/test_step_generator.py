"""
Unit tests for oracle step generation and its deterministic fallback.
"""
import json

from fakes import FakeBackend
from scout.src.context.store import ContextStore
from scout.src.discovery.route_discovery import RankedRoute
from scout.src.executor.step_generator import (
    StepGenerator,
    determine_artifacts,
    dynamic_route_steps,
    normalize_action,
)
from scout.src.oracle.gateway import OracleGateway
from scout.src.utils.config import OracleConfig
from scout.src.utils.errors import OracleTimeout
from scout.src.utils.models import ArtifactKind, ClickableElement, Component, DiscoveredRoute, PageContext

PAGE = PageContext(
    url="http://app.test/reports",
    title="Reports",
    clickable_elements=[ClickableElement(index=0, tag="BUTTON", text="Export")],
)


def _generator(*responses, threshold=0.6):
    gateway = OracleGateway(OracleConfig(confidence_threshold=threshold), backend=FakeBackend(list(responses)))
    return StepGenerator(ContextStore(), gateway)


class TestNormalisation:
    def test_aliases(self):
        assert normalize_action("input") == "type"
        assert normalize_action("FILL") == "type"
        assert normalize_action("press") == "keyboard"
        assert normalize_action("test-interaction") == "test-interactions"
        assert normalize_action("ai-discover") == "oracle-discover"
        assert normalize_action("frobnicate") == "frobnicate"
        assert normalize_action(None) == ""

    def test_artifacts_by_action(self):
        assert determine_artifacts("click") == [ArtifactKind.SCREENSHOT]
        assert determine_artifacts("navigate") == [ArtifactKind.SCREENSHOT, ArtifactKind.PERFORMANCE]
        assert determine_artifacts("discover-component") == [ArtifactKind.DOM]
        assert determine_artifacts("test-interactions") == [ArtifactKind.CONSOLE]
        assert determine_artifacts("hover") == []


class TestOracleGeneration:
    def test_generated_steps_are_normalised_and_filtered(self):
        answer = json.dumps(
            {
                "steps": [
                    {"action": "click", "selector": "#export", "description": "Export", "confidence": 0.9},
                    {"action": "input", "selector": "#search", "value": 42, "confidence": 0.8},
                    {"action": "hover", "selector": "#maybe", "confidence": 0.3},
                    {"action": "wait", "timeout": "bad"},
                    "not a step",
                ],
                "confidence": 0.8,
            }
        )
        generator = _generator(answer)
        component = Component(name="ReportTable")
        steps = generator.generate_steps(PAGE, component, "interaction-testing", max_steps=5)

        assert [s.action for s in steps] == ["click", "type", "wait"]
        assert steps[0].artifacts == [ArtifactKind.SCREENSHOT]
        assert steps[1].parameters.value == "42"
        assert steps[2].parameters.timeout == 5000
        assert all(s.generated and s.optional for s in steps)
        assert steps[0].metadata.generated_by == "step-generator"
        assert steps[0].component == component
        assert len({s.id for s in steps}) == 3

        pattern = generator.store.patterns[-1]
        assert pattern.category == "step-generation"
        assert pattern.interaction_type == "interaction-testing"
        assert pattern.details["generated"] == 3

    def test_max_steps_caps_output(self):
        answer = json.dumps({"steps": [{"action": "screenshot"} for _ in range(6)]})
        assert len(_generator(answer).generate_steps(PAGE, max_steps=2)) == 2

    def test_query_options(self):
        generator = _generator(json.dumps({"steps": [{"action": "screenshot"}]}))
        generator.generate_steps(PAGE)
        assert generator.oracle.backend.options == [{"temperature": 0.2, "max_tokens": 800}]


class TestFallback:
    def test_oracle_failure_uses_fallback(self):
        generator = _generator(OracleTimeout("slow"))
        steps = generator.generate_steps(PAGE, Component(name="ReportTable"))
        assert [s.action for s in steps] == ["screenshot", "test-interactions", "discover-component"]
        assert all(s.metadata.generated_by == "fallback" for s in steps)

    def test_empty_steps_use_fallback(self):
        steps = _generator(json.dumps({"steps": []})).generate_steps(PageContext(url="http://app.test"))
        assert [s.action for s in steps] == ["screenshot"]

    def test_without_oracle(self):
        generator = StepGenerator(ContextStore())
        assert generator.generate_with_oracle(PAGE) is None
        assert [s.action for s in generator.generate_steps(PAGE)] == ["screenshot", "test-interactions"]


class TestDynamicRouteSteps:
    def test_triple_per_route(self):
        routes = [
            RankedRoute(route=DiscoveredRoute(name="Reports", url="/reports"), component="ReportTable", score=0.9),
            RankedRoute(route=DiscoveredRoute(name="Runs", url="/runs"), component="TestRuns", score=0.5),
        ]
        steps = dynamic_route_steps(routes)
        assert [s.id for s in steps] == [
            "route-1-navigate",
            "route-1-discover",
            "route-1-test",
            "route-2-navigate",
            "route-2-discover",
            "route-2-test",
        ]
        assert [s.action for s in steps[:3]] == ["oracle-navigate", "oracle-discover", "oracle-test"]
        assert steps[0].parameters.url == "/reports"
        assert steps[0].component.name == "ReportTable"
        assert all(s.optional and s.generated for s in steps)
        assert steps[0].metadata.priority == "high"
        assert steps[3].metadata.priority == "medium"
