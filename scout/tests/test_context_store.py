"""
Unit tests for the session knowledge store.
"""
import pytest

from scout.src.context.store import ContextStore
from scout.src.utils.config import ContextConfig
from scout.src.utils.models import (
    ChangeContext,
    ChangedFile,
    ClickableElement,
    Component,
    ComponentAssociation,
    DiscoveredRoute,
    InteractionPattern,
    NavigationOutcome,
    NavigationStep,
    OracleDecision,
    PageContext,
)


def _ctx():
    return ChangeContext(
        title="Update report table",
        branch="feature/report-table",
        changed_files=[ChangedFile(filename="src/components/ReportTable.tsx", change_count=12)],
        components=[Component(name="ReportTable", file="src/components/ReportTable.tsx")],
    )


def _route(name, url, *components, method="sidebar-analysis"):
    return DiscoveredRoute(
        name=name,
        url=url,
        components=[ComponentAssociation(name=c, confidence=conf) for c, conf in components],
        discovery_method=method,
    )


@pytest.fixture
def store():
    return ContextStore(
        ContextConfig(max_navigation=5, max_snapshots=3, max_decisions=4, max_patterns=6)
    )


class TestBoundedGrowth:
    """Capped collections keep exactly the newest entries in insertion order."""

    def test_navigation_history_keeps_last_entries(self, store):
        for i in range(8):
            store.record_navigation(NavigationStep(action="click", target=f"link-{i}"))
        history = store.navigation_history
        assert len(history) == 5
        assert [step.target for step in history] == [f"link-{i}" for i in range(3, 8)]

    def test_decisions_evict_oldest(self, store):
        for i in range(6):
            store.record_decision(OracleDecision(component=f"C{i}", action="navigate", confidence=0.5))
        assert [d.component for d in store.decisions] == ["C2", "C3", "C4", "C5"]

    def test_patterns_evict_oldest(self, store):
        for i in range(10):
            store.record_pattern(InteractionPattern(category="interaction-test", details={"n": i}))
        assert len(store.patterns) == 6
        assert store.patterns[0].details == {"n": 4}

    def test_snapshots_evict_oldest_url(self, store):
        for i in range(5):
            store.record_snapshot(f"http://app.test/page-{i}", PageContext(title=f"Page {i}"))
        urls = [snap.url for snap in store.snapshots]
        assert urls == [f"http://app.test/page-{i}" for i in range(2, 5)]

    def test_overflow_never_raises(self):
        store = ContextStore(ContextConfig(max_navigation=1))
        for _ in range(50):
            store.record_navigation(NavigationStep(action="navigate"))
        assert len(store.navigation_history) == 1


class TestSnapshots:
    def test_revisit_increments_visit_count(self, store):
        store.record_snapshot("http://app.test/a", PageContext(title="A"))
        snap = store.record_snapshot(
            "http://app.test/a",
            {"title": "A again", "clickable_elements": [{"text": "Reports", "href": "/reports"}]},
        )
        assert snap.visit_count == 2
        assert snap.title == "A again"
        assert snap.elements[0].text == "Reports"
        assert len(store.snapshots) == 1

    def test_revisit_keeps_original_eviction_position(self, store):
        store.record_snapshot("http://app.test/a", PageContext())
        store.record_snapshot("http://app.test/b", PageContext())
        store.record_snapshot("http://app.test/c", PageContext())
        store.record_snapshot("http://app.test/a", PageContext())
        store.record_snapshot("http://app.test/d", PageContext())
        assert [snap.url for snap in store.snapshots] == [
            "http://app.test/b",
            "http://app.test/c",
            "http://app.test/d",
        ]

    def test_navigation_offset_is_stamped(self, store):
        recorded = store.record_navigation(
            NavigationStep(action="navigate", timestamp=store.session_started_at + 2.5)
        )
        assert recorded.offset == pytest.approx(2.5)


class TestRoutes:
    def test_same_key_merges_component_associations(self, store):
        store.record_route(_route("Reports", "/reports", ("Reports", 0.9)))
        store.record_route(_route("Reports", "/reports", ("ReportTable", 0.6), method="component-category"))
        routes = store.routes
        assert len(routes) == 1
        assert set(routes[0].component_names()) == {"Reports", "ReportTable"}

    def test_merge_keeps_higher_confidence(self, store):
        store.record_route(_route("Reports", "/reports", ("Reports", 0.6)))
        store.record_route(_route("Reports", "/reports", ("Reports", 0.9)))
        store.record_route(_route("Reports", "/reports", ("Reports", 0.3)))
        assert store.routes[0].components[0].confidence == 0.9

    def test_different_url_is_a_different_route(self, store):
        store.record_route(_route("Reports", "/reports", ("Reports", 0.9)))
        store.record_route(_route("Reports", "/v2/reports", ("Reports", 0.9)))
        assert len(store.routes) == 2

    def test_route_indexes_component_mapping(self, store):
        store.record_route(_route("Reports", "/reports", ("ReportTable", 0.8), method="component-substring"))
        mapping = store.mapping_for("ReportTable")
        assert mapping.route_url == "/reports"
        assert mapping.method == "component-substring"


class TestQueries:
    def test_similar_components_partial_and_word_overlap(self, store):
        store.record_route(_route("Reports", "/reports", ("ReportTable", 0.8)))
        store.record_route(_route("Test Runs", "/test-runs", ("TestRunList", 0.8)))
        store.record_route(_route("Charts", "/charts", ("ReportChartPanel", 0.6)))

        similar = store.find_similar_components("ReportChart")
        by_name = {item.component: item for item in similar}
        assert by_name["ReportChartPanel"].similarity_type == "partial-name-match"
        assert by_name["ReportTable"].similarity_type == "pattern-match"
        assert by_name["ReportTable"].common_words == ["report"]
        assert "TestRunList" not in by_name

    def test_similar_components_skip_exact_name(self, store):
        store.record_route(_route("Reports", "/reports", ("ReportTable", 0.8)))
        assert store.find_similar_components("ReportTable") == []

    def test_successful_patterns_newest_first_and_capped(self):
        store = ContextStore(ContextConfig(successful_patterns=2))
        store.record_pattern(InteractionPattern(category="a", component_type="table", timestamp=1.0))
        store.record_pattern(InteractionPattern(category="b", success=False, component_type="table", timestamp=2.0))
        store.record_pattern(InteractionPattern(category="c", component_type="chart", timestamp=3.0))
        store.record_pattern(InteractionPattern(category="d", component_type="table", timestamp=4.0))
        store.record_pattern(InteractionPattern(category="e", component_type="table", timestamp=5.0))

        assert [p.category for p in store.find_successful_patterns()] == ["e", "d"]
        assert [p.category for p in store.find_successful_patterns(component_type="table")] == ["e", "d"]

    def test_successful_patterns_filter_by_interaction(self, store):
        store.record_pattern(InteractionPattern(category="a", interaction_type="hover"))
        store.record_pattern(InteractionPattern(category="b", interaction_type="discover"))
        assert [p.category for p in store.find_successful_patterns(interaction_type="hover")] == ["a"]

    def test_decision_context_slices(self, store):
        store.set_change_context(_ctx())
        for i in range(5):
            store.record_navigation(NavigationStep(action="click", target=f"t{i}"))
        store.record_snapshot("http://app.test/reports", PageContext(title="Reports"))
        store.record_snapshot("http://other.test/x", PageContext(title="Other"))
        store.record_route(_route("Reports", "/reports", ("ReportTable", 0.8)))

        context = store.build_decision_context(
            component=Component(name="ReportTable"),
            current_url="http://app.test/reports",
        )
        assert context.change_context.title == "Update report table"
        assert context.current_snapshot.title == "Reports"
        assert [snap.url for snap in context.related_snapshots] == ["http://app.test/reports"]
        assert context.known_mapping.route_name == "Reports"
        assert len(context.navigation_history) == 5

        bare = store.build_decision_context(current_url="http://app.test/reports", include_history=False)
        assert bare.navigation_history == []
        assert bare.known_mapping is None


class TestLifecycle:
    def _populated(self, store):
        store.set_change_context(_ctx())
        store.record_navigation(
            NavigationStep(action="navigate", target="http://app.test", outcome=NavigationOutcome.SUCCESS)
        )
        store.record_snapshot(
            "http://app.test",
            PageContext(title="Home", clickable_elements=[ClickableElement(text="Reports", href="/reports")]),
        )
        store.record_decision(OracleDecision(component="ReportTable", action="navigate", confidence=0.7))
        store.record_route(_route("Reports", "/reports", ("Reports", 0.9), ("ReportTable", 0.6)))
        store.record_pattern(InteractionPattern(category="component-discovery", component_type="table"))
        return store

    def test_export_import_round_trip(self, store):
        exported = self._populated(store).export_state()
        restored = ContextStore(store.config)
        restored.import_state(exported)

        assert restored.export_state() == exported
        assert restored.change_context == store.change_context
        assert restored.mapping_for("ReportTable").route_name == "Reports"

    def test_round_trip_keeps_latest_route_for_shared_component(self, store):
        store.record_route(_route("Reports", "/reports", ("ReportTable", 0.6)))
        store.record_route(_route("Runs", "/runs", ("ReportTable", 0.5)))
        store.record_route(_route("Reports", "/reports", ("ReportChart", 0.7)))
        assert store.mapping_for("ReportTable").route_name == "Reports"

        restored = ContextStore(store.config)
        restored.import_state(store.export_state())

        assert restored.mapping_for("ReportTable").route_name == "Reports"
        assert restored.mapping_for("ReportChart").route_name == "Reports"
        assert (
            restored.build_decision_context(Component(name="ReportTable")).known_mapping
            == store.build_decision_context(Component(name="ReportTable")).known_mapping
        )

    def test_import_missing_fields_start_empty(self, store):
        self._populated(store)
        store.import_state({"decisions": [{"component": "X", "action": "navigate", "confidence": 0.5}]})
        assert store.change_context is None
        assert store.navigation_history == []
        assert store.routes == []
        assert [d.component for d in store.decisions] == ["X"]

    def test_clear_drops_everything(self, store):
        self._populated(store).clear()
        assert store.change_context is None
        assert store.summary()["routes"] == 0
        assert store.snapshots == []
