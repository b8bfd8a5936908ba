"""
Unit tests for initial plan construction.
"""
from scout.src.executor.planner import ExplorationPlanner
from scout.src.utils.config import ExplorerConfig
from scout.src.utils.models import ArtifactKind, ChangeContext, Component

CTX = ChangeContext(
    title="Update report table",
    components=[Component(name="ReportTable"), Component(name="TestRunChart")],
)


def _config(**overrides):
    values = {"app_url": "http://app.test", "max_steps": 20}
    values.update(overrides)
    return ExplorerConfig(**values)


class TestPlanner:
    def test_deterministic_plan_covers_each_component(self):
        plan = ExplorationPlanner(_config(), oracle_enabled=False).create_plan(CTX)
        actions = [step.action for step in plan.steps]
        assert actions == [
            "navigate",
            "wait",
            "navigate-for-component",
            "discover-component",
            "screenshot",
            "test-interactions",
            "navigate-for-component",
            "discover-component",
            "screenshot",
            "test-interactions",
            "test-interactions",
            "screenshot",
        ]
        assert plan.steps[2].component.name == "ReportTable"
        assert plan.steps[6].component.name == "TestRunChart"
        assert plan.title == "Explore: Update report table"

    def test_only_opening_steps_are_required(self):
        plan = ExplorationPlanner(_config(), oracle_enabled=False).create_plan(CTX)
        assert [s.id for s in plan.steps if not s.optional] == ["navigate-to-app", "wait-for-load"]

    def test_oracle_plan_uses_route_discovery(self):
        plan = ExplorationPlanner(_config(), oracle_enabled=True).create_plan(CTX, "http://staging.test")
        assert [step.action for step in plan.steps] == [
            "navigate",
            "wait",
            "route-discovery",
            "test-interactions",
            "screenshot",
        ]
        assert plan.steps[0].parameters.url == "http://staging.test"
        assert plan.steps[0].artifacts == [ArtifactKind.SCREENSHOT, ArtifactKind.PERFORMANCE]
        assert [c.name for c in plan.steps[2].target_components] == ["ReportTable", "TestRunChart"]

    def test_plan_truncated_to_max_steps(self):
        plan = ExplorationPlanner(_config(max_steps=4), oracle_enabled=False).create_plan(CTX)
        assert len(plan.steps) == 4

    def test_oracle_flag_follows_config(self):
        planner = ExplorationPlanner(_config(disable_oracle=True))
        assert planner.oracle_enabled is False
        assert planner.create_plan(CTX).steps[0].parameters.url == "http://app.test"
