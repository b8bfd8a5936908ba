"""Builds the initial exploration plan for a change context."""
from __future__ import annotations

import time
from typing import Callable, List, Optional

from scout.src.utils.config import CONFIG, ExplorerConfig
from scout.src.utils.models import (
    ArtifactKind,
    ChangeContext,
    ExplorationPlan,
    Step,
    StepMetadata,
    StepParameters,
)


class ExplorationPlanner:
    def __init__(
        self,
        config: Optional[ExplorerConfig] = None,
        *,
        oracle_enabled: Optional[bool] = None,
        log_callback: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.config = config or CONFIG.explorer
        self.oracle_enabled = (not self.config.disable_oracle) if oracle_enabled is None else oracle_enabled
        self._log_callback = log_callback

    def _log(self, message: str) -> None:
        print(f"[Planner] {message}")
        if self._log_callback:
            self._log_callback(message)

    def create_plan(self, ctx: ChangeContext, app_url: Optional[str] = None) -> ExplorationPlan:
        """
        Static skeleton: open the app, then either a route-discovery step that
        grows the plan at run time (oracle enabled) or a deterministic
        navigate / discover / screenshot / test block per changed component.
        """
        url = app_url or self.config.app_url
        steps: List[Step] = [
            Step(
                id="navigate-to-app",
                action="navigate",
                description="Navigate to application",
                parameters=StepParameters(url=url, timeout=self.config.navigation_timeout),
                artifacts=[ArtifactKind.SCREENSHOT, ArtifactKind.PERFORMANCE],
            ),
            Step(
                id="wait-for-load",
                action="wait",
                description="Wait for application to load",
                parameters=StepParameters(selector="body", condition="visible", timeout=10000),
            ),
        ]

        if self.oracle_enabled:
            steps.append(
                Step(
                    id="route-discovery",
                    action="route-discovery",
                    description="Discover routes related to the change",
                    optional=True,
                    target_components=list(ctx.components),
                    artifacts=[ArtifactKind.SCREENSHOT],
                    metadata=StepMetadata(reasoning="Rank navigation targets against the change"),
                )
            )
        else:
            for index, component in enumerate(ctx.components, start=1):
                prefix = f"component-{index}"
                steps.extend(
                    [
                        Step(
                            id=f"{prefix}-navigate",
                            action="navigate-for-component",
                            description=f"Navigate to page containing {component.name}",
                            component=component,
                            optional=True,
                            parameters=StepParameters(timeout=10000),
                            artifacts=[ArtifactKind.SCREENSHOT],
                        ),
                        Step(
                            id=f"{prefix}-discover",
                            action="discover-component",
                            description=f"Discover {component.name} component",
                            component=component,
                            optional=True,
                            parameters=StepParameters(timeout=15000),
                            artifacts=[ArtifactKind.DOM],
                        ),
                        Step(
                            id=f"{prefix}-screenshot",
                            action="screenshot",
                            description=f"Capture {component.name} state",
                            component=component,
                            optional=True,
                            artifacts=[ArtifactKind.SCREENSHOT],
                        ),
                        Step(
                            id=f"{prefix}-test",
                            action="test-interactions",
                            description=f"Test {component.name} interactions",
                            component=component,
                            optional=True,
                            parameters=StepParameters(patterns=["buttons", "links"]),
                            artifacts=[ArtifactKind.CONSOLE],
                        ),
                    ]
                )

        steps.extend(
            [
                Step(
                    id="test-interactions",
                    action="test-interactions",
                    description="Test common UI interactions",
                    optional=True,
                    parameters=StepParameters(patterns=["buttons", "links"]),
                    artifacts=[ArtifactKind.CONSOLE, ArtifactKind.NETWORK],
                ),
                Step(
                    id="final-screenshot",
                    action="screenshot",
                    description="Capture final state",
                    optional=True,
                    artifacts=[ArtifactKind.SCREENSHOT],
                ),
            ]
        )

        if len(steps) > self.config.max_steps:
            self._log(f"plan truncated from {len(steps)} to {self.config.max_steps} steps")
            steps = steps[: self.config.max_steps]

        plan = ExplorationPlan(id=f"plan-{int(time.time() * 1000)}", title=f"Explore: {ctx.title}", steps=steps)
        mode = "oracle route discovery" if self.oracle_enabled else "deterministic"
        self._log(f"created plan {plan.id} with {len(steps)} steps ({mode})")
        return plan
