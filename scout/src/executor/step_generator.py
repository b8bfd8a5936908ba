"""Oracle-driven step generation with deterministic fallback steps."""
from __future__ import annotations

import itertools
from typing import Any, Callable, Dict, List, Optional, Sequence

from scout.src.context.store import ContextStore
from scout.src.oracle.gateway import OracleGateway
from scout.src.oracle.prompts import build_step_generation_prompt, component_type_hint
from scout.src.utils.models import (
    ArtifactKind,
    Component,
    InteractionPattern,
    PageContext,
    Step,
    StepMetadata,
    StepParameters,
)

ACTION_ALIASES: Dict[str, str] = {
    "click": "click",
    "type": "type",
    "input": "type",
    "fill": "type",
    "wait": "wait",
    "screenshot": "screenshot",
    "scroll": "scroll",
    "hover": "hover",
    "select": "select",
    "press": "keyboard",
    "keyboard": "keyboard",
    "navigate": "navigate",
    "test-interaction": "test-interactions",
    "test-interactions": "test-interactions",
    "test-dynamic-interactions": "test-interactions",
    "discover": "discover-component",
    "discover-component": "discover-component",
    "ai-navigate": "oracle-navigate",
    "ai-discover": "oracle-discover",
    "ai-test": "oracle-test",
    "oracle-navigate": "oracle-navigate",
    "oracle-discover": "oracle-discover",
    "oracle-test": "oracle-test",
}


def normalize_action(action: Any) -> str:
    """Map free-form action names onto executor actions; unknown names pass through."""
    name = str(action or "").strip().lower()
    return ACTION_ALIASES.get(name, name)


def determine_artifacts(action: str) -> List[ArtifactKind]:
    artifacts: List[ArtifactKind] = []
    if action in ("click", "navigate"):
        artifacts.append(ArtifactKind.SCREENSHOT)
    if action in ("navigate", "oracle-navigate"):
        artifacts.append(ArtifactKind.PERFORMANCE)
    if action in ("discover-component", "oracle-discover"):
        artifacts.append(ArtifactKind.DOM)
    if "test" in action:
        artifacts.append(ArtifactKind.CONSOLE)
    return artifacts


def _as_int(value: Any) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _as_float(value: Any) -> Optional[float]:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


class StepGenerator:
    """Asks the oracle for the next steps on the current page."""

    def __init__(
        self,
        store: ContextStore,
        oracle: Optional[OracleGateway] = None,
        *,
        confidence_threshold: Optional[float] = None,
        log_callback: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.store = store
        self.oracle = oracle
        if confidence_threshold is None:
            confidence_threshold = oracle.confidence_threshold if oracle is not None else 0.6
        self.confidence_threshold = confidence_threshold
        self._log_callback = log_callback
        self._ids = itertools.count(1)

    def _log(self, message: str) -> None:
        print(f"[StepGenerator] {message}")
        if self._log_callback:
            self._log_callback(message)

    def _next_id(self, prefix: str) -> str:
        return f"{prefix}-{next(self._ids)}"

    def generate_steps(
        self,
        page: PageContext,
        component: Optional[Component] = None,
        step_type: str = "exploration",
        max_steps: int = 5,
    ) -> List[Step]:
        steps = self.generate_with_oracle(page, component, step_type, max_steps)
        if steps is None:
            return self.fallback_steps(page, component)
        return steps

    def generate_with_oracle(
        self,
        page: PageContext,
        component: Optional[Component] = None,
        step_type: str = "exploration",
        max_steps: int = 5,
    ) -> Optional[List[Step]]:
        """Oracle-generated steps, or None when the oracle gave nothing usable."""
        if self.oracle is None:
            return None
        context = self.store.build_decision_context(component=component, current_url=page.url, include_history=True)
        patterns = self.store.find_successful_patterns(
            component_type=component_type_hint(component.name) if component else None,
        )
        prompt = build_step_generation_prompt(step_type, context, page, max_steps, patterns)
        response = self.oracle.query(prompt, {"temperature": 0.2, "max_tokens": 800})
        raw_steps = response.data.get("steps") if response.success and response.data else None
        if not isinstance(raw_steps, list) or not raw_steps:
            self._log(f"oracle returned no steps ({response.error or 'empty'}); using fallback")
            return None

        steps = self._process(raw_steps, component)[:max_steps]
        self.store.record_pattern(
            InteractionPattern(
                category="step-generation",
                success=True,
                component_type=component_type_hint(component.name) if component else "page",
                interaction_type=step_type,
                details={"generated": len(steps), "confidence": (response.data or {}).get("confidence")},
            )
        )
        self._log(f"oracle generated {len(steps)} steps for {component.name if component else 'current page'}")
        return steps

    def _process(self, raw_steps: Sequence[Any], component: Optional[Component]) -> List[Step]:
        steps: List[Step] = []
        for raw in raw_steps:
            if not isinstance(raw, dict):
                continue
            confidence = _as_float(raw.get("confidence"))
            if confidence is not None and confidence < self.confidence_threshold:
                self._log(f"skipping low-confidence step: {raw.get('description', '')}")
                continue
            action = normalize_action(raw.get("action"))
            if not action:
                continue
            steps.append(
                Step(
                    id=self._next_id("gen"),
                    type="oracle-generated",
                    action=action,
                    description=str(raw.get("description") or action),
                    parameters=StepParameters(
                        selector=raw.get("selector") or None,
                        value=None if raw.get("value") is None else str(raw.get("value")),
                        timeout=_as_int(raw.get("timeout")) or 5000,
                        wait_after=_as_int(raw.get("waitAfter")) or 1000,
                        url=raw.get("url") or None,
                        key=raw.get("key") or None,
                    ),
                    optional=bool(raw.get("optional", True)),
                    artifacts=determine_artifacts(action),
                    metadata=StepMetadata(
                        reasoning=str(raw.get("reasoning") or ""),
                        confidence=min(max(confidence, 0.0), 1.0) if confidence is not None else None,
                        priority=str(raw.get("priority") or "medium"),
                        expected_outcome=str(raw.get("expectedOutcome") or ""),
                        generated_by="step-generator",
                        component=component.name if component else None,
                    ),
                    component=component,
                    generated=True,
                )
            )
        return steps

    def fallback_steps(self, page: PageContext, component: Optional[Component] = None) -> List[Step]:
        steps = [
            Step(
                id=self._next_id("fallback"),
                type="fallback",
                action="screenshot",
                description="Capture current page state",
                optional=True,
                metadata=StepMetadata(generated_by="fallback"),
                generated=True,
            )
        ]
        if page.clickable_elements:
            steps.append(
                Step(
                    id=self._next_id("fallback"),
                    type="fallback",
                    action="test-interactions",
                    description="Test visible interactive elements",
                    parameters=StepParameters(patterns=["buttons"]),
                    optional=True,
                    artifacts=[ArtifactKind.CONSOLE],
                    metadata=StepMetadata(generated_by="fallback"),
                    component=component,
                    generated=True,
                )
            )
        if component is not None:
            steps.append(
                Step(
                    id=self._next_id("fallback"),
                    type="fallback",
                    action="discover-component",
                    description=f"Discover {component.name} on the current page",
                    optional=True,
                    artifacts=[ArtifactKind.DOM],
                    metadata=StepMetadata(generated_by="fallback", component=component.name),
                    component=component,
                    generated=True,
                )
            )
        self._log(f"using {len(steps)} fallback steps")
        return steps


def dynamic_route_steps(routes: Sequence[Any]) -> List[Step]:
    """navigate / discover / test triple for each selected route (RankedRoute)."""
    steps: List[Step] = []
    for index, ranked in enumerate(routes, start=1):
        component = Component(name=ranked.component)
        route = ranked.route
        base = f"route-{index}"
        metadata = StepMetadata(
            reasoning=ranked.reasoning,
            confidence=ranked.score,
            priority="high" if index == 1 else "medium",
            generated_by="route-discovery",
            component=component.name,
        )
        steps.append(
            Step(
                id=f"{base}-navigate",
                type="dynamic",
                action="oracle-navigate",
                description=f"Navigate to {route.name} for {component.name}",
                parameters=StepParameters(url=route.url or None, timeout=20000),
                optional=True,
                artifacts=[ArtifactKind.SCREENSHOT, ArtifactKind.PERFORMANCE],
                metadata=metadata,
                component=component,
                generated=True,
            )
        )
        steps.append(
            Step(
                id=f"{base}-discover",
                type="dynamic",
                action="oracle-discover",
                description=f"Discover {component.name} on {route.name}",
                parameters=StepParameters(timeout=15000),
                optional=True,
                artifacts=[ArtifactKind.SCREENSHOT, ArtifactKind.DOM],
                metadata=metadata,
                component=component,
                generated=True,
            )
        )
        steps.append(
            Step(
                id=f"{base}-test",
                type="dynamic",
                action="oracle-test",
                description=f"Test {component.name} interactions on {route.name}",
                parameters=StepParameters(timeout=20000),
                optional=True,
                artifacts=[ArtifactKind.SCREENSHOT, ArtifactKind.CONSOLE],
                metadata=metadata,
                component=component,
                generated=True,
            )
        )
    return steps
