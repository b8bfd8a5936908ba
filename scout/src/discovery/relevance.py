"""
Relevance scoring between a change context and navigation candidates.

All keyword and category heuristics live here so the discovery service, the
executor fallbacks and the planner agree on what "relevant" means.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Callable, Generic, List, Optional, Sequence, Tuple, TypeVar

from scout.src.utils.config import CONFIG, RelevanceConfig
from scout.src.utils.models import ChangeContext, DiscoveredRoute
from scout.src.utils.text import path_segments, split_camel

T = TypeVar("T")


@dataclass(frozen=True)
class CategoryRule:
    """Vocabulary cluster for one kind of UI component."""

    name: str
    component_words: Tuple[str, ...]
    element_words: Tuple[str, ...]
    route_words: Tuple[str, ...]


CATEGORY_RULES: Tuple[CategoryRule, ...] = (
    CategoryRule("report", ("report", "render", "testrun"), ("report", "view", "show"), ("report",)),
    CategoryRule("test", ("test",), ("test", "run", "execute"), ("test",)),
    CategoryRule("chart", ("chart",), ("chart", "graph", "visual"), ("report", "chart", "table")),
    CategoryRule("table", ("table",), ("table", "data", "list"), ("report", "chart", "table")),
)

GENERIC_ACTION_WORDS = ("view", "show", "open", "details", "summary", "expand", "collapse")

# Route name/href vocabulary -> component inferred for a navigation entry.
ROUTE_COMPONENTS: Tuple[Tuple[str, str, str], ...] = (
    ("report", "/reports", "Reports"),
    ("test", "/test", "TestRuns"),
    ("dashboard", "/dashboard", "Dashboard"),
    ("setting", "/setting", "Settings"),
    ("build", "/build", "Builds"),
)


@dataclass(slots=True)
class Scored(Generic[T]):
    candidate: T
    score: float
    matched: List[str] = field(default_factory=list)
    reasoning: str = ""


def extract_keywords(ctx: Optional[ChangeContext], min_length: int = 3) -> List[str]:
    """Title words, changed-file path segments and component-name words, deduplicated in order."""
    if ctx is None:
        return []
    raw: List[str] = []
    raw.extend(word.lower() for word in re.split(r"\s+", ctx.title or ""))
    for changed in ctx.changed_files:
        raw.extend(path_segments(changed.filename))
    for component in ctx.components:
        raw.extend(part.lower() for part in split_camel(component.name))
    keywords: List[str] = []
    for word in raw:
        if len(word) >= min_length and word not in keywords:
            keywords.append(word)
    return keywords


def keyword_score(
    keywords: Sequence[str],
    candidate_text: str,
    config: Optional[RelevanceConfig] = None,
) -> Tuple[float, List[str]]:
    """Pure `(keywords, candidate) -> score`; unmatched candidates get the floor score."""
    cfg = config or CONFIG.relevance
    text = (candidate_text or "").lower()
    matched = [kw for kw in keywords if kw in text]
    if not matched or not keywords:
        return cfg.floor_score, []
    return (len(matched) / len(keywords)) * cfg.match_weight + cfg.base_score, matched


def route_text(route: DiscoveredRoute) -> str:
    components = " ".join(route.component_names())
    return f"{components} {route.name} {route.url}".lower()


def rank_candidates(
    ctx: Optional[ChangeContext],
    candidates: Sequence[T],
    text_of: Callable[[T], str] = str,
    config: Optional[RelevanceConfig] = None,
) -> List[Scored[T]]:
    """Keyword-overlap ranking; keeps candidates strictly above the cutoff."""
    cfg = config or CONFIG.relevance
    keywords = extract_keywords(ctx, cfg.min_keyword_length)
    scored: List[Scored[T]] = []
    for candidate in candidates:
        score, matched = keyword_score(keywords, text_of(candidate), cfg)
        reasoning = (
            f"Matches change keywords: {', '.join(matched)}" if matched else "No keyword overlap with the change"
        )
        scored.append(Scored(candidate=candidate, score=score, matched=matched, reasoning=reasoning))
    kept = [item for item in scored if item.score > cfg.cutoff]
    # sorted() is stable, so equal scores keep candidate order.
    return sorted(kept, key=lambda item: -item.score)


def rank_routes(
    ctx: Optional[ChangeContext],
    routes: Sequence[DiscoveredRoute],
    config: Optional[RelevanceConfig] = None,
) -> List[Scored[DiscoveredRoute]]:
    return rank_candidates(ctx, routes, route_text, config)


def categories_for_component(component_name: str) -> List[CategoryRule]:
    name = (component_name or "").lower()
    return [rule for rule in CATEGORY_RULES if any(word in name for word in rule.component_words)]


def route_matches_component(component_name: str, route: DiscoveredRoute) -> Optional[str]:
    """How a route matches a component: "substring", "category" or None."""
    name = (component_name or "").lower()
    if not name:
        return None
    route_name = route.name.lower()
    route_url = (route.url or "").lower()
    if name in route_name or name in route_url:
        return "substring"
    if any(name in assoc.name.lower() for assoc in route.components):
        return "substring"
    for rule in categories_for_component(component_name):
        if any(word in route_name or word in route_url for word in rule.route_words):
            return "category"
    return None


def find_route_for_component(
    component_name: str,
    routes: Sequence[DiscoveredRoute],
) -> Optional[Tuple[DiscoveredRoute, str]]:
    """
    Component-to-route ladder: substring match over every route first, then
    category vocabulary. None means "no route", which callers treat as
    "stay on the current page".
    """
    for route in routes:
        if route_matches_component(component_name, route) == "substring":
            return route, "substring"
    for route in routes:
        if route_matches_component(component_name, route) == "category":
            return route, "category"
    return None


def infer_component_from_route(text: str, href: str = "") -> str:
    lower_text = (text or "").lower()
    lower_href = (href or "").lower()
    for word, path, component in ROUTE_COMPONENTS:
        if word in lower_text or path in lower_href:
            return component
    return re.sub(r"[^a-zA-Z0-9]", "", text or "") or "Navigation"


def is_element_relevant_to_component(element_text: str, component_name: str) -> bool:
    if not element_text:
        return False
    text = element_text.lower()
    name = (component_name or "").lower()
    if name and name in text:
        return True
    for rule in categories_for_component(component_name):
        if any(word in text for word in rule.element_words):
            return True
    return any(word in text for word in GENERIC_ACTION_WORDS)


def navigation_category(text: str) -> Tuple[str, float]:
    """Sidebar grouping used when harvesting routes from a page."""
    lower = (text or "").lower()
    if "report" in lower or "test" in lower:
        return "reports", 0.9
    if "project" in lower:
        return "projects", 0.8
    return "general", 0.6
