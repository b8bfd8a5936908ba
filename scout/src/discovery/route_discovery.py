"""Route discovery: harvest navigation targets and rank them against the change."""
from __future__ import annotations

from typing import Callable, Dict, List, Optional, Sequence

from pydantic import BaseModel, Field

from scout.src.context.store import ContextStore
from scout.src.oracle.gateway import OracleGateway
from scout.src.oracle.prompts import build_route_relevance_prompt
from scout.src.utils.config import CONFIG, RelevanceConfig
from scout.src.utils.models import (
    ComponentAssociation,
    Component,
    DiscoveredRoute,
    NavigationAction,
    OracleDecision,
    PageContext,
)

from scout.src.utils.text import quoted, text_selector

from .page_context import is_sidebar_element
from .relevance import (
    find_route_for_component,
    infer_component_from_route,
    navigation_category,
    rank_routes,
)


class RankedRoute(BaseModel):
    route: DiscoveredRoute
    component: str
    score: float
    reasoning: str = ""
    method: str = "keyword"


class RouteDiscoveryResult(BaseModel):
    routes: List[RankedRoute] = Field(default_factory=list)
    selected: List[RankedRoute] = Field(default_factory=list)
    harvested: int = 0
    method: str = "keyword"
    unmapped_components: List[str] = Field(default_factory=list)

    @property
    def success(self) -> bool:
        return bool(self.routes)


def _harvestable(href: str, text: str) -> bool:
    href = (href or "").strip()
    return bool(text.strip()) and href.startswith("/") and href != "/" and "javascript:" not in href


class RouteDiscovery:
    """
    Turns a page's navigation elements into DiscoveredRoutes, maps changed
    components onto them, and ranks the result. The oracle ranks first when
    one is given; the keyword-overlap scorer is the deterministic fallback.
    """

    def __init__(
        self,
        store: ContextStore,
        oracle: Optional[OracleGateway] = None,
        config: Optional[RelevanceConfig] = None,
        *,
        log_callback: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.store = store
        self.oracle = oracle
        self.config = config or CONFIG.relevance
        self._log_callback = log_callback

    def _log(self, message: str) -> None:
        print(f"[RouteDiscovery] {message}")
        if self._log_callback:
            self._log_callback(message)

    # ------------------------------------------------------------------
    def harvest_routes(self, page: PageContext) -> List[DiscoveredRoute]:
        harvested: Dict[tuple, DiscoveredRoute] = {}
        for element in page.clickable_elements:
            text = element.text.strip()
            if not (is_sidebar_element(element) and text) and not _harvestable(element.href, text):
                continue
            category, confidence = navigation_category(text)
            component = infer_component_from_route(text, element.href)
            selector = f"a[href={quoted(element.href)}]" if element.href else text_selector(text)
            route = DiscoveredRoute(
                name=text,
                url=element.href,
                navigation_path=[NavigationAction(action="click", selector=selector, text=text)],
                components=[ComponentAssociation(name=component, confidence=confidence)],
                discovery_method="sidebar-analysis",
                category=category,
            )
            stored = self.store.record_route(route)
            harvested[stored.key] = stored
        self._log(f"harvested {len(harvested)} routes from {page.url or 'current page'}")
        return list(harvested.values())

    def map_components(self, components: Sequence[Component], routes: Sequence[DiscoveredRoute]) -> List[str]:
        """Attach each component to its best route; returns the names left unmapped."""
        unmapped: List[str] = []
        for component in components:
            match = find_route_for_component(component.name, routes)
            if match is None:
                self._log(f"no route found for {component.name}; staying on current page")
                unmapped.append(component.name)
                continue
            route, kind = match
            confidence = 0.8 if kind == "substring" else 0.6
            self.store.record_route(
                DiscoveredRoute(
                    name=route.name,
                    url=route.url,
                    components=[ComponentAssociation(name=component.name, confidence=confidence)],
                    discovery_method=f"component-{kind}",
                )
            )
        return unmapped

    # ------------------------------------------------------------------
    def rank(self, routes: Sequence[DiscoveredRoute]) -> List[RankedRoute]:
        ctx = self.store.change_context
        if ctx is None:
            self._log("no change context; keeping discovery order")
            return [
                RankedRoute(route=r, component=self._component_of(r), score=self.config.floor_score, method="unranked")
                for r in list(routes)[: self.config.top_k]
            ]
        if self.oracle is not None and routes:
            ranked = self._rank_with_oracle(routes)
            if ranked:
                return ranked
            self._log("oracle ranking unusable; using keyword fallback")
        return [
            RankedRoute(
                route=item.candidate,
                component=self._component_of(item.candidate),
                score=round(item.score, 4),
                reasoning=item.reasoning,
                method="keyword",
            )
            for item in rank_routes(ctx, routes, self.config)
        ]

    def _rank_with_oracle(self, routes: Sequence[DiscoveredRoute]) -> Optional[List[RankedRoute]]:
        prompt = build_route_relevance_prompt(self.store.change_context, routes)
        response = self.oracle.query(prompt)
        entries = response.data.get("relevantRoutes") if response.success and response.data else None
        if not isinstance(entries, list):
            return None
        ranked: List[RankedRoute] = []
        seen = set()
        for entry in entries:
            if not isinstance(entry, dict):
                continue
            try:
                index = int(entry.get("routeIndex")) - 1
                score = float(entry.get("relevanceScore", 0.0))
            except (TypeError, ValueError):
                continue
            if index < 0 or index >= len(routes) or index in seen:
                continue
            seen.add(index)
            route = routes[index]
            ranked.append(
                RankedRoute(
                    route=route,
                    component=str(entry.get("component") or self._component_of(route)),
                    score=min(max(score, 0.0), 1.0),
                    reasoning=str(entry.get("reasoning") or ""),
                    method="oracle",
                )
            )
        if not ranked:
            return None
        ranked.sort(key=lambda item: -item.score)
        self.store.record_decision(
            OracleDecision(
                component=ranked[0].component,
                payload={"relevantRoutes": [r.route.name for r in ranked]},
                action="route-relevance",
                confidence=ranked[0].score,
            )
        )
        return ranked

    def select_top(self, ranked: Sequence[RankedRoute]) -> List[RankedRoute]:
        return list(ranked[: self.config.top_k])

    # ------------------------------------------------------------------
    def discover_routes(self, page: PageContext, components: Sequence[Component] = ()) -> RouteDiscoveryResult:
        if page.url:
            self.store.record_snapshot(page.url, page)
        harvested = self.harvest_routes(page)
        # Routes learned earlier in the session are candidates too.
        candidates = self.store.routes
        unmapped = self.map_components(components, candidates)
        candidates = self.store.routes
        ranked = self.rank(candidates)
        selected = self.select_top(ranked)
        method = ranked[0].method if ranked else "keyword"
        self._log(
            f"{len(candidates)} candidate routes, {len(ranked)} relevant, "
            f"selected: {', '.join(r.route.name for r in selected) or 'none'}"
        )
        return RouteDiscoveryResult(
            routes=ranked,
            selected=selected,
            harvested=len(harvested),
            method=method,
            unmapped_components=unmapped,
        )

    def _component_of(self, route: DiscoveredRoute) -> str:
        """Changed component attached to the route, else its first association."""
        ctx = self.store.change_context
        changed = {c.name for c in ctx.components} if ctx else set()
        for assoc in route.components:
            if assoc.name in changed:
                return assoc.name
        return route.components[0].name if route.components else route.name
