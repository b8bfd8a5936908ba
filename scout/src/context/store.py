"""Session-scoped knowledge store for one exploration run."""
from __future__ import annotations

import threading
import time
from collections import deque
from typing import Any, Callable, Deque, Dict, List, Optional
from urllib.parse import urlsplit

from pydantic import BaseModel, Field

from scout.src.utils.config import CONFIG, ContextConfig
from scout.src.utils.models import (
    ChangeContext,
    Component,
    DiscoveredRoute,
    InteractionPattern,
    NavigationStep,
    OracleDecision,
    PageContext,
    PageSnapshot,
)
from scout.src.utils.text import contains_either, name_words


class ComponentMapping(BaseModel):
    component: str
    route_name: str
    route_url: str = ""
    confidence: float = 0.0
    method: str = ""


class SimilarComponent(BaseModel):
    component: str
    mapping: ComponentMapping
    similarity_type: str
    common_words: List[str] = Field(default_factory=list)


class DecisionContext(BaseModel):
    """Filtered, size-bounded view handed to prompt builders."""

    change_context: Optional[ChangeContext] = None
    current_url: Optional[str] = None
    target_component: Optional[Component] = None
    current_snapshot: Optional[PageSnapshot] = None
    related_snapshots: List[PageSnapshot] = Field(default_factory=list)
    navigation_history: List[NavigationStep] = Field(default_factory=list)
    recent_decisions: List[OracleDecision] = Field(default_factory=list)
    known_mapping: Optional[ComponentMapping] = None
    similar_components: List[SimilarComponent] = Field(default_factory=list)


def _origin(url: Optional[str]) -> str:
    if not url:
        return ""
    parts = urlsplit(url)
    if not parts.scheme or not parts.netloc:
        return ""
    return f"{parts.scheme}://{parts.netloc}"


class ContextStore:
    """
    Everything learned during one exploration session.

    Navigation steps, snapshots, decisions and interaction patterns are capped;
    once a cap is exceeded the oldest entry is dropped. Discovered routes are
    keyed by (name, url) and merge their component associations.
    """

    def __init__(
        self,
        config: Optional[ContextConfig] = None,
        *,
        log_callback: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.config = config or CONFIG.context
        self._log_callback = log_callback
        self._lock = threading.RLock()
        self._reset()

    def _log(self, message: str) -> None:
        print(f"[ContextStore] {message}")
        if self._log_callback:
            self._log_callback(message)

    def _reset(self) -> None:
        self.change_context: Optional[ChangeContext] = None
        self.session_started_at = time.time()
        self._navigation: Deque[NavigationStep] = deque(maxlen=self.config.max_navigation)
        self._snapshots: Dict[str, PageSnapshot] = {}
        self._decisions: Deque[OracleDecision] = deque(maxlen=self.config.max_decisions)
        self._patterns: Deque[InteractionPattern] = deque(maxlen=self.config.max_patterns)
        self._routes: Dict[tuple, DiscoveredRoute] = {}
        self._mappings: Dict[str, ComponentMapping] = {}

    # ------------------------------------------------------------------
    # read views
    # ------------------------------------------------------------------
    @property
    def navigation_history(self) -> List[NavigationStep]:
        return list(self._navigation)

    @property
    def snapshots(self) -> List[PageSnapshot]:
        return list(self._snapshots.values())

    @property
    def decisions(self) -> List[OracleDecision]:
        return list(self._decisions)

    @property
    def patterns(self) -> List[InteractionPattern]:
        return list(self._patterns)

    @property
    def routes(self) -> List[DiscoveredRoute]:
        return list(self._routes.values())

    def snapshot_for(self, url: str) -> Optional[PageSnapshot]:
        return self._snapshots.get(url)

    def mapping_for(self, component_name: str) -> Optional[ComponentMapping]:
        return self._mappings.get(component_name)

    # ------------------------------------------------------------------
    # recording
    # ------------------------------------------------------------------
    def set_change_context(self, ctx: ChangeContext) -> None:
        with self._lock:
            self.change_context = ctx
        self._log(f"change context set: {ctx.title}")

    def record_navigation(self, step: NavigationStep) -> NavigationStep:
        with self._lock:
            stamped = step.model_copy(update={"offset": max(step.timestamp - self.session_started_at, 0.0)})
            self._navigation.append(stamped)
        self._log(f"navigation {stamped.action} -> {stamped.outcome.value}")
        return stamped

    def record_snapshot(self, url: str, data: PageContext | Dict[str, Any]) -> PageSnapshot:
        page = data if isinstance(data, PageContext) else PageContext.model_validate(data)
        with self._lock:
            previous = self._snapshots.get(url)
            snapshot = PageSnapshot(
                url=url,
                title=page.title,
                visit_count=(previous.visit_count if previous else 0) + 1,
                elements=list(page.clickable_elements),
                headings=list(page.headings),
            )
            # Overwrite keeps the entry's original position for eviction.
            self._snapshots[url] = snapshot
            while len(self._snapshots) > self.config.max_snapshots:
                oldest = next(iter(self._snapshots))
                del self._snapshots[oldest]
        return snapshot

    def record_decision(self, decision: OracleDecision) -> None:
        with self._lock:
            self._decisions.append(decision)

    def record_route(self, route: DiscoveredRoute) -> DiscoveredRoute:
        with self._lock:
            existing = self._routes.get(route.key)
            if existing is None:
                stored = route.model_copy(deep=True)
                self._routes[route.key] = stored
            else:
                stored = existing
                merged = {assoc.name: assoc for assoc in existing.components}
                for assoc in route.components:
                    current = merged.get(assoc.name)
                    if current is None or assoc.confidence > current.confidence:
                        merged[assoc.name] = assoc
                stored.components = list(merged.values())
                if not stored.navigation_path and route.navigation_path:
                    stored.navigation_path = list(route.navigation_path)
            self._index_route(stored)
        self._log(f"route {stored.name} -> {stored.url or '-'} ({len(stored.components)} components)")
        return stored

    def _index_route(self, route: DiscoveredRoute) -> None:
        for assoc in route.components:
            self._mappings[assoc.name] = ComponentMapping(
                component=assoc.name,
                route_name=route.name,
                route_url=route.url,
                confidence=assoc.confidence,
                method=route.discovery_method,
            )

    def record_pattern(self, pattern: InteractionPattern) -> None:
        with self._lock:
            self._patterns.append(pattern)

    # ------------------------------------------------------------------
    # queries
    # ------------------------------------------------------------------
    def build_decision_context(
        self,
        component: Optional[Component] = None,
        current_url: Optional[str] = None,
        include_history: bool = True,
    ) -> DecisionContext:
        cfg = self.config
        context = DecisionContext(
            change_context=self.change_context,
            current_url=current_url,
            target_component=component,
            recent_decisions=list(self._decisions)[-cfg.recent_decisions:],
        )
        if include_history:
            context.navigation_history = list(self._navigation)[-cfg.recent_navigation:]
        if current_url:
            context.current_snapshot = self._snapshots.get(current_url)
            origin = _origin(current_url)
            if origin:
                same_origin = [snap for snap in self._snapshots.values() if _origin(snap.url) == origin]
                context.related_snapshots = same_origin[-cfg.related_snapshots:]
        if component is not None:
            context.known_mapping = self._mappings.get(component.name)
            context.similar_components = self.find_similar_components(component.name)
        return context

    def find_similar_components(self, component_name: str) -> List[SimilarComponent]:
        target = (component_name or "").lower()
        target_words = set(name_words(component_name))
        similar: List[SimilarComponent] = []
        for name, mapping in self._mappings.items():
            if name.lower() == target:
                continue
            if contains_either(name, component_name):
                similar.append(SimilarComponent(component=name, mapping=mapping, similarity_type="partial-name-match"))
            else:
                common = sorted(target_words.intersection(name_words(name)))
                if not common:
                    continue
                similar.append(
                    SimilarComponent(
                        component=name,
                        mapping=mapping,
                        similarity_type="pattern-match",
                        common_words=common,
                    )
                )
            if len(similar) >= self.config.similar_components:
                break
        return similar

    def find_successful_patterns(
        self,
        component_type: Optional[str] = None,
        interaction_type: Optional[str] = None,
    ) -> List[InteractionPattern]:
        matches: List[InteractionPattern] = []
        for pattern in reversed(self._patterns):
            if pattern.success is not True:
                continue
            if component_type and pattern.component_type:
                if not contains_either(pattern.component_type, component_type):
                    continue
            if interaction_type and pattern.interaction_type != interaction_type:
                continue
            matches.append(pattern)
        matches.sort(key=lambda p: p.timestamp, reverse=True)
        return matches[: self.config.successful_patterns]

    def summary(self) -> Dict[str, Any]:
        return {
            "title": self.change_context.title if self.change_context else None,
            "navigation_steps": len(self._navigation),
            "pages_visited": len(self._snapshots),
            "decisions": len(self._decisions),
            "routes": len(self._routes),
            "component_mappings": len(self._mappings),
            "patterns": len(self._patterns),
            "session_seconds": round(time.time() - self.session_started_at, 3),
        }

    # ------------------------------------------------------------------
    # lifecycle
    # ------------------------------------------------------------------
    def export_state(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "change_context": self.change_context.model_dump(mode="json") if self.change_context else None,
                "navigation_history": [step.model_dump(mode="json") for step in self._navigation],
                "snapshots": [snap.model_dump(mode="json") for snap in self._snapshots.values()],
                "decisions": [d.model_dump(mode="json") for d in self._decisions],
                "routes": [route.model_dump(mode="json") for route in self._routes.values()],
                "component_mappings": [m.model_dump(mode="json") for m in self._mappings.values()],
                "patterns": [p.model_dump(mode="json") for p in self._patterns],
                "session_started_at": self.session_started_at,
            }

    def import_state(self, data: Dict[str, Any]) -> None:
        """Replace all in-memory state; missing fields start empty."""
        data = data or {}
        with self._lock:
            self._reset()
            raw_ctx = data.get("change_context")
            self.change_context = ChangeContext.model_validate(raw_ctx) if raw_ctx else None
            self.session_started_at = float(data.get("session_started_at") or time.time())
            for raw in data.get("navigation_history") or []:
                self._navigation.append(NavigationStep.model_validate(raw))
            for raw in data.get("snapshots") or []:
                snap = PageSnapshot.model_validate(raw)
                self._snapshots[snap.url] = snap
            while len(self._snapshots) > self.config.max_snapshots:
                del self._snapshots[next(iter(self._snapshots))]
            for raw in data.get("decisions") or []:
                self._decisions.append(OracleDecision.model_validate(raw))
            for raw in data.get("patterns") or []:
                self._patterns.append(InteractionPattern.model_validate(raw))
            for raw in data.get("routes") or []:
                route = DiscoveredRoute.model_validate(raw)
                self._routes[route.key] = route
                self._index_route(route)
            raw_mappings = data.get("component_mappings")
            if raw_mappings is not None:
                self._mappings = {}
                for raw in raw_mappings:
                    mapping = ComponentMapping.model_validate(raw)
                    self._mappings[mapping.component] = mapping
        self._log("state imported")

    def clear(self) -> None:
        """Start a fresh session; the change context goes too."""
        with self._lock:
            self._reset()
        self._log("cleared")
