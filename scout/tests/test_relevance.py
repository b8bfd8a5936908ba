"""
Unit tests for keyword relevance scoring and component/route inference.
"""
import pytest

from scout.src.discovery.relevance import (
    extract_keywords,
    find_route_for_component,
    infer_component_from_route,
    is_element_relevant_to_component,
    keyword_score,
    navigation_category,
    rank_candidates,
    rank_routes,
    route_matches_component,
)
from scout.src.utils.config import RelevanceConfig
from scout.src.utils.models import ChangeContext, ChangedFile, Component, ComponentAssociation, DiscoveredRoute


def _route(name, url, component=None):
    components = [ComponentAssociation(name=component, confidence=0.9)] if component else []
    return DiscoveredRoute(name=name, url=url, components=components)


class TestKeywords:
    def test_keywords_from_title_paths_and_components(self):
        ctx = ChangeContext(
            title="Fix TestRun report",
            changed_files=[ChangedFile(filename="src/components/ReportTable.tsx")],
            components=[Component(name="ReportTable")],
        )
        assert extract_keywords(ctx) == [
            "fix",
            "testrun",
            "report",
            "src",
            "components",
            "reporttable",
            "tsx",
            "table",
        ]

    def test_short_words_dropped(self):
        ctx = ChangeContext(title="Fix UI in a table")
        assert extract_keywords(ctx) == ["fix", "table"]

    def test_no_context_no_keywords(self):
        assert extract_keywords(None) == []


class TestKeywordScore:
    def test_formula(self):
        score, matched = keyword_score(["update", "report", "table"], "Reports")
        assert matched == ["report"]
        assert score == pytest.approx((1 / 3) * 0.8 + 0.2)

    def test_unmatched_candidate_gets_floor(self):
        assert keyword_score(["billing"], "Settings") == (0.1, [])

    def test_empty_keywords_gets_floor(self):
        assert keyword_score([], "Reports") == (0.1, [])

    def test_weights_are_configurable(self):
        config = RelevanceConfig(match_weight=0.5, base_score=0.5, floor_score=0.0)
        score, _ = keyword_score(["report"], "reports", config)
        assert score == pytest.approx(1.0)


class TestRanking:
    def test_empty_match_scenario(self):
        ctx = ChangeContext(title="Refactor billing invoice view")
        keywords = extract_keywords(ctx)
        for candidate in ("Settings", "Dashboard"):
            assert keyword_score(keywords, candidate)[0] == 0.1
        assert rank_candidates(ctx, ["Settings", "Dashboard"]) == []

    def test_ranking_is_deterministic(self):
        ctx = ChangeContext(
            title="Update report table",
            components=[Component(name="ReportTable")],
        )
        routes = [
            _route("Test Runs", "/test-runs", "TestRuns"),
            _route("Reports", "/reports", "Reports"),
            _route("Report Tables", "/reports/tables", "ReportTable"),
            _route("Dashboard", "/dashboard", "Dashboard"),
        ]
        first = [(item.candidate.name, item.score) for item in rank_routes(ctx, routes)]
        for _ in range(5):
            assert [(item.candidate.name, item.score) for item in rank_routes(ctx, routes)] == first
        assert first[0][0] == "Report Tables"
        assert "Dashboard" not in [name for name, _ in first]

    def test_ties_keep_candidate_order(self):
        ctx = ChangeContext(title="report")
        ranked = rank_candidates(ctx, ["Report B", "Report A"])
        assert [item.candidate for item in ranked] == ["Report B", "Report A"]

    def test_cutoff_is_strict(self):
        ctx = ChangeContext(title="report")
        config = RelevanceConfig(cutoff=1.0)
        assert rank_candidates(ctx, ["Reports"], config=config) == []

    def test_reasoning_names_matches(self):
        ctx = ChangeContext(title="report")
        ranked = rank_candidates(ctx, ["Reports"])
        assert ranked[0].matched == ["report"]
        assert "report" in ranked[0].reasoning


class TestComponentRouteLadder:
    ROUTES = [
        _route("Test Runs", "/test-runs", "TestRuns"),
        _route("Reports", "/reports", "Reports"),
        _route("Settings", "/settings", "Settings"),
    ]

    def test_substring_match_wins(self):
        route, kind = find_route_for_component("Settings", self.ROUTES)
        assert (route.name, kind) == ("Settings", "substring")

    def test_category_match_for_chart_vocabulary(self):
        route, kind = find_route_for_component("ReportChart", self.ROUTES)
        assert (route.name, kind) == ("Reports", "category")

    def test_substring_beats_earlier_category_match(self):
        routes = [_route("Reports", "/reports"), _route("TestRunReport", "/trr")]
        route, kind = find_route_for_component("TestRunReport", routes)
        assert (route.name, kind) == ("TestRunReport", "substring")

    def test_no_route_found(self):
        assert find_route_for_component("Billing", self.ROUTES) is None
        assert route_matches_component("", self.ROUTES[0]) is None

    def test_association_name_counts_as_substring(self):
        route = _route("Overview", "/overview", "ReportTable")
        assert route_matches_component("ReportTable", route) == "substring"


class TestHeuristics:
    @pytest.mark.parametrize(
        "text, href, expected",
        [
            ("Test Runs", "/test-runs", "TestRuns"),
            ("Reports", "/reports", "Reports"),
            ("Overview", "/dashboard", "Dashboard"),
            ("Billing Center", "/billing", "BillingCenter"),
            ("", "", "Navigation"),
        ],
    )
    def test_infer_component_from_route(self, text, href, expected):
        assert infer_component_from_route(text, href) == expected

    def test_element_relevance(self):
        assert is_element_relevant_to_component("Open ReportTable", "ReportTable")
        assert is_element_relevant_to_component("Export data", "ReportTable")
        assert is_element_relevant_to_component("View details", "Billing")
        assert not is_element_relevant_to_component("Delete", "ReportTable")
        assert not is_element_relevant_to_component("", "ReportTable")

    def test_navigation_category(self):
        assert navigation_category("Test Reports") == ("reports", 0.9)
        assert navigation_category("Projects") == ("projects", 0.8)
        assert navigation_category("Settings") == ("general", 0.6)
