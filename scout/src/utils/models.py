"""Shared data models for scout components."""
from __future__ import annotations

import time
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class FileStatus(str, Enum):
    ADDED = "added"
    MODIFIED = "modified"
    REMOVED = "removed"


class ChangedFile(BaseModel):
    """One file touched by the change under test."""

    model_config = ConfigDict(frozen=True)

    filename: str
    status: FileStatus = FileStatus.MODIFIED
    change_count: int = Field(default=0, ge=0, description="added + deleted lines")


class Component(BaseModel):
    """UI component inferred from the changed files."""

    model_config = ConfigDict(frozen=True)

    name: str
    file: Optional[str] = None


class ChangeContext(BaseModel):
    """Structured description of the code change driving exploration."""

    model_config = ConfigDict(frozen=True)

    title: str
    branch: str = ""
    changed_files: List[ChangedFile] = Field(default_factory=list)
    components: List[Component] = Field(default_factory=list)


class NavigationOutcome(str, Enum):
    SUCCESS = "success"
    NO_CHANGE = "no-change"
    FAILED = "failed"


class NavigationStep(BaseModel):
    """Single navigation attempt; never mutated after it is recorded."""

    model_config = ConfigDict(frozen=True)

    action: str
    target: str = Field(default="", description="element description")
    outcome: NavigationOutcome = NavigationOutcome.SUCCESS
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    reasoning: str = ""
    component: Optional[str] = None
    selector: Optional[str] = None
    before_url: Optional[str] = None
    after_url: Optional[str] = None
    timestamp: float = Field(default_factory=time.time)
    offset: float = Field(default=0.0, description="seconds since session start")


class ClickableElement(BaseModel):
    """Visible interactive element captured from a page."""

    index: int = 0
    tag: str = ""
    text: str = ""
    aria_label: str = ""
    href: str = ""
    class_name: str = ""
    element_id: str = ""
    data_test_id: str = ""
    selector: str = ""


class PageContext(BaseModel):
    """What the explorer currently sees on the page."""

    url: str = ""
    title: str = ""
    headings: List[str] = Field(default_factory=list)
    clickable_elements: List[ClickableElement] = Field(default_factory=list)
    main_content: str = ""


class PageSnapshot(BaseModel):
    """Latest capture of a url; one entry per distinct url."""

    url: str
    title: str = ""
    visit_count: int = 1
    elements: List[ClickableElement] = Field(default_factory=list)
    headings: List[str] = Field(default_factory=list)
    timestamp: float = Field(default_factory=time.time)


class OracleDecision(BaseModel):
    """Logged decision, oracle- or heuristic-produced."""

    component: str = ""
    payload: Dict[str, Any] = Field(default_factory=dict)
    action: str = ""
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    timestamp: float = Field(default_factory=time.time)


class ComponentAssociation(BaseModel):
    name: str
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)


class NavigationAction(BaseModel):
    """Sub-action on the path towards a route."""

    action: str = "click"
    selector: Optional[str] = None
    text: str = ""
    url: Optional[str] = None


class DiscoveredRoute(BaseModel):
    """Navigation target keyed by (name, url)."""

    name: str
    url: str = ""
    navigation_path: List[NavigationAction] = Field(default_factory=list)
    components: List[ComponentAssociation] = Field(default_factory=list)
    discovery_method: str = ""
    category: str = ""

    @property
    def key(self) -> tuple[str, str]:
        return (self.name, self.url)

    def component_names(self) -> List[str]:
        return [assoc.name for assoc in self.components]


class InteractionPattern(BaseModel):
    """Outcome of an interaction, kept for similarity lookups."""

    category: str
    success: bool = True
    component_type: str = ""
    interaction_type: str = ""
    details: Dict[str, Any] = Field(default_factory=dict)
    timestamp: float = Field(default_factory=time.time)


class ArtifactKind(str, Enum):
    SCREENSHOT = "screenshot"
    CONSOLE = "console"
    NETWORK = "network"
    PERFORMANCE = "performance"
    DOM = "dom"


class ActionKind(str, Enum):
    """Closed set of actions the executor dispatches."""

    NAVIGATE = "navigate"
    WAIT = "wait"
    CLICK = "click"
    TYPE = "type"
    SELECT = "select"
    KEYBOARD = "keyboard"
    SCREENSHOT = "screenshot"
    RESIZE = "resize"
    SCROLL = "scroll"
    HOVER = "hover"
    CAPTURE_STATE = "capture-state"
    DISCOVER_COMPONENT = "discover-component"
    TEST_INTERACTIONS = "test-interactions"
    NAVIGATE_FOR_COMPONENT = "navigate-for-component"
    ROUTE_DISCOVERY = "route-discovery"
    ORACLE_NAVIGATE = "oracle-navigate"
    ORACLE_DISCOVER = "oracle-discover"
    ORACLE_TEST = "oracle-test"
    ORACLE_GENERATE_STEPS = "oracle-generate-steps"


ORACLE_ACTIONS = frozenset(
    {
        ActionKind.ORACLE_NAVIGATE.value,
        ActionKind.ORACLE_DISCOVER.value,
        ActionKind.ORACLE_TEST.value,
        ActionKind.ORACLE_GENERATE_STEPS.value,
    }
)


class StepParameters(BaseModel):
    selector: Optional[str] = None
    value: Optional[str] = None
    timeout: Optional[int] = Field(default=None, description="milliseconds")
    wait_after: Optional[int] = Field(default=None, description="milliseconds")
    url: Optional[str] = None
    key: Optional[str] = None
    condition: Optional[str] = Field(default=None, description="visible | hidden | attached")
    width: Optional[int] = None
    height: Optional[int] = None
    clear: bool = True
    patterns: List[str] = Field(default_factory=list)


class StepMetadata(BaseModel):
    reasoning: str = ""
    confidence: Optional[float] = None
    priority: str = "medium"
    expected_outcome: str = ""
    generated_by: str = ""
    component: Optional[str] = None


class Step(BaseModel):
    """Typed unit of work in an exploration plan."""

    id: str
    type: str = "static"
    action: str
    description: str = ""
    parameters: StepParameters = Field(default_factory=StepParameters)
    optional: bool = False
    artifacts: List[ArtifactKind] = Field(default_factory=list)
    metadata: StepMetadata = Field(default_factory=StepMetadata)
    component: Optional[Component] = None
    target_components: List[Component] = Field(default_factory=list)
    step_type: str = "exploration"
    max_steps: int = 5
    execute_immediately: bool = False
    generated: bool = Field(default=False, description="appended while the plan was running")


class ExplorationPlan(BaseModel):
    id: str
    title: str = ""
    steps: List[Step] = Field(default_factory=list)
    created_at: float = Field(default_factory=time.time)


class StepStatus(str, Enum):
    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"


class Artifact(BaseModel):
    step_id: str
    kind: ArtifactKind
    payload: Any = None
    path: Optional[str] = None


class StepResult(BaseModel):
    """Execution record for one step; terminal status is set exactly once."""

    step_id: str
    action: str = ""
    description: str = ""
    status: StepStatus = StepStatus.PENDING
    started_at: float = Field(default_factory=time.time)
    ended_at: Optional[float] = None
    duration_ms: int = 0
    artifacts: List[Artifact] = Field(default_factory=list)
    error: Optional[str] = None
    data: Dict[str, Any] = Field(default_factory=dict)

    @property
    def is_terminal(self) -> bool:
        return self.status != StepStatus.PENDING

    def finish(self, status: StepStatus, error: Optional[str] = None) -> None:
        if self.is_terminal:
            raise ValueError(f"step {self.step_id} already finished as {self.status.value}")
        if status == StepStatus.PENDING:
            raise ValueError("cannot finish a step as pending")
        self.status = status
        if error is not None:
            self.error = error
        self.ended_at = time.time()
        self.duration_ms = int((self.ended_at - self.started_at) * 1000)


class RunResult(BaseModel):
    """Read-only snapshot handed to downstream analyzers."""

    plan_id: str
    started_at: float = Field(default_factory=time.time)
    ended_at: Optional[float] = None
    duration_ms: int = 0
    total_steps: int = 0
    executed_steps: int = 0
    successful_steps: int = 0
    failed_steps: int = 0
    skipped_steps: int = 0
    aborted: bool = False
    steps: List[StepResult] = Field(default_factory=list)
    telemetry: Dict[str, List[Dict[str, Any]]] = Field(default_factory=dict)
    final_url: Optional[str] = None
    final_title: Optional[str] = None


def _as_confidence(value: Any, default: float = 0.0) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return min(max(number, 0.0), 1.0)


class DecisionPayload(BaseModel):
    """Structured oracle decision."""

    should_act: bool = False
    target_ref: str = Field(default="", description="1-based element index or element text")
    selector: Optional[str] = None
    element_text: str = ""
    reasoning: str = ""
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    alternatives: List[Dict[str, Any]] = Field(default_factory=list)
    next_steps: List[Dict[str, Any]] = Field(default_factory=list)

    @classmethod
    def from_raw(cls, data: Dict[str, Any]) -> "DecisionPayload":
        should_act = data.get("shouldAct", data.get("shouldClick", data.get("should_act", False)))
        index = data.get("elementIndex", data.get("target_ref"))
        element_text = str(data.get("elementText") or data.get("element_text") or "")
        target_ref = str(index) if index not in (None, "", 0, "0") else element_text
        alternatives = data.get("alternativeElements") or data.get("alternatives") or []
        next_steps = data.get("nextSteps") or data.get("next_steps") or []
        return cls(
            should_act=bool(should_act) if not isinstance(should_act, str) else should_act.lower() == "true",
            target_ref=target_ref,
            selector=data.get("selector") or None,
            element_text=element_text,
            reasoning=str(data.get("reasoning") or ""),
            confidence=_as_confidence(data.get("confidence")),
            alternatives=[a for a in alternatives if isinstance(a, dict)],
            next_steps=[s for s in next_steps if isinstance(s, dict)],
        )


class OracleResponse(BaseModel):
    """Outcome of one oracle query; `partial` marks field-level recovery."""

    success: bool
    data: Optional[Dict[str, Any]] = None
    raw_response: str = ""
    error: Optional[str] = None
    error_kind: Optional[str] = None
    partial: bool = False

    def decision(self) -> Optional[DecisionPayload]:
        if not self.success or not isinstance(self.data, dict):
            return None
        return DecisionPayload.from_raw(self.data)

    def actionable(self, threshold: float) -> Optional[DecisionPayload]:
        """Decision worth acting on, or None below the confidence threshold."""
        decision = self.decision()
        if decision is None or not decision.should_act:
            return None
        if decision.confidence < threshold:
            return None
        return decision
