"""
Step executor.

Runs an ExplorationPlan one step at a time against a BrowserDriver. Every
exception raised while dispatching a step is converted into that step's
StepResult; only a driver that cannot start escapes `run`. A failed required
step stops the plan, a failed optional step is recorded as skipped.
"""
from __future__ import annotations

import time
from collections import deque
from typing import Any, Callable, Deque, Dict, List, Optional, Sequence
from urllib.parse import urljoin

from scout.src.context.store import ContextStore
from scout.src.discovery.page_context import element_selector, extract_page_context
from scout.src.discovery.relevance import find_route_for_component, is_element_relevant_to_component
from scout.src.discovery.route_discovery import RouteDiscovery
from scout.src.oracle.gateway import OracleGateway
from scout.src.oracle.prompts import build_discovery_prompt, build_navigation_prompt, component_type_hint
from scout.src.utils.config import CONFIG, ExplorerConfig, RelevanceConfig
from scout.src.utils.errors import (
    DriverError,
    ElementNotFound,
    NavigationTimeout,
    ScoutError,
    UnknownActionError,
)
from scout.src.utils.models import (
    ORACLE_ACTIONS,
    ActionKind,
    ArtifactKind,
    Component,
    DecisionPayload,
    ExplorationPlan,
    InteractionPattern,
    NavigationOutcome,
    NavigationStep,
    OracleDecision,
    PageContext,
    RunResult,
    Step,
    StepResult,
    StepStatus,
)
from scout.src.utils.text import name_words, quoted, text_selector

from .artifacts import MemoryArtifactSink, collect_artifact
from .driver import BrowserDriver
from .step_generator import StepGenerator, dynamic_route_steps
from .strategies import run_chain

Handler = Callable[[Step, StepResult], Optional[StepStatus]]

INTERACTION_SELECTORS: Dict[str, str] = {
    "buttons": 'button:not([disabled]), [role="button"]',
    "links": "a[href]",
    "tabs": '[role="tab"]',
    "inputs": "input:not([type=hidden]), textarea",
}


class StepExecutor:
    def __init__(
        self,
        driver: BrowserDriver,
        store: ContextStore,
        oracle: Optional[OracleGateway] = None,
        *,
        config: Optional[ExplorerConfig] = None,
        relevance: Optional[RelevanceConfig] = None,
        artifact_sink: Any = None,
        sleep: Callable[[float], None] = time.sleep,
        log_callback: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.driver = driver
        self.store = store
        self.oracle = oracle
        self.config = config or CONFIG.explorer
        self.relevance = relevance or CONFIG.relevance
        self.artifact_sink = artifact_sink if artifact_sink is not None else MemoryArtifactSink()
        self._sleep = sleep
        self._log_callback = log_callback
        self.step_generator = StepGenerator(store, oracle, log_callback=log_callback)
        self.oracle_ready = False
        self._queue: Deque[Step] = deque()
        self._handlers: Dict[str, Handler] = {
            ActionKind.NAVIGATE.value: self._navigate,
            ActionKind.WAIT.value: self._wait,
            ActionKind.CLICK.value: self._click,
            ActionKind.TYPE.value: self._type,
            ActionKind.SELECT.value: self._select,
            ActionKind.KEYBOARD.value: self._keyboard,
            ActionKind.SCREENSHOT.value: self._screenshot,
            ActionKind.RESIZE.value: self._resize,
            ActionKind.SCROLL.value: self._scroll,
            ActionKind.HOVER.value: self._hover,
            ActionKind.CAPTURE_STATE.value: self._capture_state,
            ActionKind.DISCOVER_COMPONENT.value: self._discover_component,
            ActionKind.TEST_INTERACTIONS.value: self._test_interactions,
            ActionKind.NAVIGATE_FOR_COMPONENT.value: self._navigate_for_component,
            ActionKind.ROUTE_DISCOVERY.value: self._route_discovery,
            ActionKind.ORACLE_NAVIGATE.value: self._oracle_navigate,
            ActionKind.ORACLE_DISCOVER.value: self._oracle_discover,
            ActionKind.ORACLE_TEST.value: self._oracle_test,
            ActionKind.ORACLE_GENERATE_STEPS.value: self._oracle_generate_steps,
        }

    def _log(self, message: str) -> None:
        print(f"[Executor] {message}")
        if self._log_callback:
            self._log_callback(message)

    @property
    def pending_steps(self) -> List[Step]:
        return list(self._queue)

    # ------------------------------------------------------------------
    # plan loop
    # ------------------------------------------------------------------
    def run(self, plan: ExplorationPlan) -> RunResult:
        """Execute the plan; DriverInitError propagates before any step runs."""
        run = RunResult(plan_id=plan.id, total_steps=len(plan.steps))
        self.driver.start()
        try:
            self.oracle_ready = self._check_oracle()
            self._queue = deque(plan.steps)
            self._log(f"executing plan {plan.id}: {len(plan.steps)} steps")
            while self._queue:
                step = self._queue.popleft()
                result = self.execute_step(step)
                run.steps.append(result)
                if result.status == StepStatus.SUCCESS:
                    run.successful_steps += 1
                elif result.status == StepStatus.FAILED:
                    run.failed_steps += 1
                else:
                    run.skipped_steps += 1
                if result.status == StepStatus.FAILED and not step.optional:
                    run.aborted = True
                    self._log(f"required step {step.id} failed; aborting {len(self._queue)} remaining steps")
                    break
                self._sleep(self.config.step_pause)
            run.executed_steps = len(run.steps)
            run.total_steps = run.executed_steps + len(self._queue)
            run.telemetry = self.driver.telemetry.snapshot()
            run.final_url = self._safe_url()
            run.final_title = self._safe_title()
        finally:
            self.driver.close()
        run.ended_at = time.time()
        run.duration_ms = int((run.ended_at - run.started_at) * 1000)
        self.artifact_sink.save_run(run)
        self._log(
            f"plan {plan.id} finished: {run.successful_steps} succeeded, {run.failed_steps} failed, "
            f"{run.skipped_steps} skipped{' (aborted)' if run.aborted else ''}"
        )
        return run

    def _check_oracle(self) -> bool:
        if self.oracle is None or self.config.disable_oracle:
            self._log("oracle disabled; using deterministic strategies")
            return False
        ready = self.oracle.is_available()
        self._log("oracle available" if ready else "oracle unavailable; using deterministic strategies")
        return ready

    def execute_step(self, step: Step) -> StepResult:
        result = StepResult(step_id=step.id, action=step.action, description=step.description)
        handler = self._handlers.get(step.action)
        if handler is None:
            error = UnknownActionError(step.action)
            self._log(f"warning: {error} (step {step.id} skipped)")
            result.finish(StepStatus.SKIPPED, str(error))
            return result

        self._log(f"step {step.id}: {step.action} - {step.description}")
        try:
            status = handler(step, result) or StepStatus.SUCCESS
        except Exception as exc:
            message = str(exc) or exc.__class__.__name__
            self._log(f"step {step.id} error: {message}")
            self._capture_error_screenshot(step, result)
            status = StepStatus.SKIPPED if step.optional else StepStatus.FAILED
            result.finish(status, message)
            self._log(f"step {step.id} -> {status.value}")
            return result

        if status != StepStatus.FAILED:
            self._capture_artifacts(step, result)
        if step.parameters.wait_after:
            self._sleep(step.parameters.wait_after / 1000)
        result.finish(status)
        self._log(f"step {step.id} -> {status.value}")
        return result

    def _enqueue(self, steps: Sequence[Step]) -> None:
        self._queue.extend(steps)
        self._log(f"appended {len(steps)} steps to the plan")

    # ------------------------------------------------------------------
    # artifacts
    # ------------------------------------------------------------------
    def _capture_artifacts(self, step: Step, result: StepResult) -> None:
        for kind in step.artifacts:
            try:
                payload = collect_artifact(kind, self.driver)
                result.artifacts.append(self.artifact_sink.emit(step.id, kind, payload))
            except (ScoutError, OSError) as exc:
                result.data.setdefault("artifact_errors", {})[kind.value] = str(exc)
                self._log(f"{kind.value} capture failed for {step.id}: {exc}")

    def _capture_error_screenshot(self, step: Step, result: StepResult) -> None:
        try:
            payload = self.driver.screenshot()
            artifact = self.artifact_sink.emit(step.id, ArtifactKind.SCREENSHOT, payload, name=f"{step.id}-error")
        except (ScoutError, OSError) as exc:
            self._log(f"error screenshot failed for {step.id}: {exc}")
            return
        result.artifacts.append(artifact)

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------
    def _safe_url(self) -> Optional[str]:
        try:
            return self.driver.current_url()
        except DriverError:
            return None

    def _safe_title(self) -> Optional[str]:
        try:
            return self.driver.title()
        except DriverError:
            return None

    def _timeout(self, step: Step) -> int:
        return step.parameters.timeout or self.config.step_timeout

    def _resolve_url(self, href: str) -> str:
        return urljoin(self._safe_url() or self.config.app_url, href)

    def _record_page(self) -> PageContext:
        page = extract_page_context(self.driver)
        if page.url:
            self.store.record_snapshot(page.url, page)
        return page

    def _locate(self, selector: Optional[str], timeout: int, *, strict: bool = False) -> Any:
        """
        Wait for and return the element behind selector.

        Strict lookups are for explicit element steps: a wait timeout or an
        empty match is a driver failure there. Otherwise a missing element is
        ElementNotFound, which fallback strategies treat as "nothing here".
        """
        if not selector:
            raise ValueError("step requires a selector")
        try:
            self.driver.wait_for(selector, "attached", timeout)
        except NavigationTimeout as exc:
            if strict:
                raise
            raise ElementNotFound(f"{selector} did not appear within {timeout}ms") from exc
        element = self.driver.find(selector)
        if element is None:
            if strict:
                raise DriverError(f"no element matches {selector}")
            raise ElementNotFound(f"no element matches {selector}")
        return element

    def _visible(self, elements: Sequence[Any]) -> List[Any]:
        return [el for el in elements if self.driver.is_visible(el)]

    def _record_navigation(
        self,
        action: str,
        target: str,
        before: Optional[str],
        *,
        component: Optional[Component] = None,
        confidence: float = 1.0,
        reasoning: str = "",
        selector: Optional[str] = None,
    ) -> NavigationStep:
        after = self._safe_url()
        outcome = NavigationOutcome.SUCCESS if after != before else NavigationOutcome.NO_CHANGE
        return self.store.record_navigation(
            NavigationStep(
                action=action,
                target=target,
                outcome=outcome,
                confidence=confidence,
                reasoning=reasoning,
                component=component.name if component else None,
                selector=selector,
                before_url=before,
                after_url=after,
            )
        )

    def _goto(self, url: str, timeout: int, *, component: Optional[Component] = None, reasoning: str = "") -> Dict[str, Any]:
        before = self._safe_url()
        status = self.driver.navigate(url, timeout)
        if status is not None and status >= 400:
            self.store.record_navigation(
                NavigationStep(
                    action="navigate",
                    target=url,
                    outcome=NavigationOutcome.FAILED,
                    component=component.name if component else None,
                    before_url=before,
                    reasoning=f"HTTP {status}",
                )
            )
            raise DriverError(f"navigation to {url} returned HTTP {status}")
        if not self.driver.wait_for_idle(timeout):
            self._log(f"network did not settle after navigating to {url}")
        nav = self._record_navigation("navigate", url, before, component=component, reasoning=reasoning)
        self._record_page()
        return {"url": nav.after_url, "status": status, "outcome": nav.outcome.value}

    def _click_selector(
        self,
        selector: str,
        timeout: int,
        *,
        component: Optional[Component] = None,
        confidence: float = 1.0,
        reasoning: str = "",
        target: str = "",
        strict: bool = False,
    ) -> Dict[str, Any]:
        element = self._locate(selector, timeout, strict=strict)
        before = self._safe_url()
        self.driver.click(element, timeout)
        self.driver.wait_for_idle(timeout)
        nav = self._record_navigation(
            "click",
            target or selector,
            before,
            component=component,
            confidence=confidence,
            reasoning=reasoning,
            selector=selector,
        )
        self._record_page()
        return {"selector": selector, "url": nav.after_url, "outcome": nav.outcome.value}

    # ------------------------------------------------------------------
    # primitive actions
    # ------------------------------------------------------------------
    def _navigate(self, step: Step, result: StepResult) -> None:
        url = step.parameters.url or self.config.app_url
        timeout = step.parameters.timeout or self.config.navigation_timeout
        result.data.update(self._goto(url, timeout, component=step.component))

    def _wait(self, step: Step, result: StepResult) -> None:
        params = step.parameters
        if params.selector:
            self.driver.wait_for(params.selector, params.condition or "visible", self._timeout(step))
            result.data["selector"] = params.selector
        else:
            self._sleep((params.timeout or 1000) / 1000)

    def _click(self, step: Step, result: StepResult) -> None:
        confidence = step.metadata.confidence if step.metadata.confidence is not None else 1.0
        result.data.update(
            self._click_selector(
                step.parameters.selector,
                self._timeout(step),
                component=step.component,
                confidence=confidence,
                reasoning=step.metadata.reasoning,
                target=step.description,
                strict=True,
            )
        )

    def _type(self, step: Step, result: StepResult) -> None:
        element = self._locate(step.parameters.selector, self._timeout(step), strict=True)
        self.driver.type(element, step.parameters.value or "", clear=step.parameters.clear, timeout=self._timeout(step))
        result.data["selector"] = step.parameters.selector

    def _select(self, step: Step, result: StepResult) -> None:
        if not step.parameters.selector:
            raise ValueError("select requires a selector")
        self.driver.select(step.parameters.selector, step.parameters.value or "", self._timeout(step))
        result.data.update({"selector": step.parameters.selector, "value": step.parameters.value})

    def _keyboard(self, step: Step, result: StepResult) -> None:
        key = step.parameters.key or step.parameters.value
        if not key:
            raise ValueError("keyboard requires a key")
        self.driver.press(key)
        result.data["key"] = key

    def _screenshot(self, step: Step, result: StepResult) -> None:
        if ArtifactKind.SCREENSHOT in step.artifacts:
            return
        payload = self.driver.screenshot()
        result.artifacts.append(self.artifact_sink.emit(step.id, ArtifactKind.SCREENSHOT, payload))

    def _resize(self, step: Step, result: StepResult) -> None:
        width = step.parameters.width or 1280
        height = step.parameters.height or 720
        self.driver.set_viewport(width, height)
        result.data["viewport"] = {"width": width, "height": height}

    def _scroll(self, step: Step, result: StepResult) -> None:
        element = None
        if step.parameters.selector:
            element = self._locate(step.parameters.selector, self._timeout(step), strict=True)
        self.driver.scroll(element)

    def _hover(self, step: Step, result: StepResult) -> None:
        element = self._locate(step.parameters.selector, self._timeout(step), strict=True)
        self.driver.hover(element, self._timeout(step))

    def _capture_state(self, step: Step, result: StepResult) -> None:
        page = self._record_page()
        result.data.update(
            {
                "url": page.url,
                "title": page.title,
                "headings": page.headings[:5],
                "elements": len(page.clickable_elements),
                "viewport": self.driver.viewport(),
            }
        )

    # ------------------------------------------------------------------
    # component discovery and interaction testing
    # ------------------------------------------------------------------
    def _discovery_strategies(self, component: Component):
        kebab = "-".join(name_words(component.name))
        candidates = (
            ("data-test", f'[data-testid*="{kebab}"], [data-test*="{kebab}"]'),
            ("class-name", f'[class*="{kebab}"], [class*={quoted(component.name)}]'),
            ("text", text_selector(component.name)),
        )

        def make(selector: str):
            def strategy() -> Optional[Dict[str, Any]]:
                visible = self._visible(self.driver.find_all(selector, limit=5))
                if not visible:
                    return None
                return {
                    "found": True,
                    "selector": selector,
                    "count": len(visible),
                    "texts": [self.driver.element_text(el)[:80] for el in visible],
                }

            return strategy

        return [(name, make(selector)) for name, selector in candidates]

    def _record_discovery(self, component: Component, method: str, data: Dict[str, Any]) -> None:
        self.store.record_pattern(
            InteractionPattern(
                category="component-discovery",
                success=bool(data.get("found")),
                component_type=component_type_hint(component.name),
                interaction_type="discover",
                details={"component": component.name, "method": method, "selector": data.get("selector")},
            )
        )

    def _discover_component(self, step: Step, result: StepResult) -> None:
        self._record_page()
        component = step.component
        if component is None:
            result.data.update({"found": False, "reason": "no component given"})
            return
        outcome = run_chain(self._discovery_strategies(component), self._log)
        data = outcome.data or {"found": False}
        self._record_discovery(component, outcome.strategy, data)
        result.data.update(data)
        result.data["strategy"] = outcome.strategy

    def _exercise_elements(self, patterns: Sequence[str], component: Optional[Component], timeout: int) -> Dict[str, Any]:
        tested: List[Dict[str, Any]] = []
        errors: List[Dict[str, str]] = []
        for pattern in patterns or ["buttons"]:
            selector = INTERACTION_SELECTORS.get(pattern)
            if selector is None:
                self._log(f"unknown interaction pattern: {pattern}")
                continue
            for element in self._visible(self.driver.find_all(selector, limit=5)):
                text = self.driver.element_text(element).strip()
                if component is not None and not is_element_relevant_to_component(text, component.name):
                    continue
                entry = {"pattern": pattern, "text": text[:80]}
                try:
                    if pattern == "links":
                        entry["href"] = self.driver.element_attribute(element, "href") or ""
                    self.driver.hover(element, timeout)
                    entry["interaction"] = "hover"
                    tested.append(entry)
                except DriverError as exc:
                    errors.append({"pattern": pattern, "text": text[:80], "error": str(exc)})
        if component is not None or tested:
            self.store.record_pattern(
                InteractionPattern(
                    category="interaction-test",
                    success=bool(tested),
                    component_type=component_type_hint(component.name) if component else "page",
                    interaction_type="hover",
                    details={"tested": len(tested), "errors": len(errors)},
                )
            )
        return {"tested": tested, "count": len(tested), "errors": errors}

    def _test_interactions(self, step: Step, result: StepResult) -> None:
        result.data.update(self._exercise_elements(step.parameters.patterns, step.component, self._timeout(step)))

    # ------------------------------------------------------------------
    # navigation towards components
    # ------------------------------------------------------------------
    def _navigate_for_component(self, step: Step, result: StepResult) -> None:
        component = step.component
        if component is None:
            result.data.update({"method": "current-page", "reason": "no component given"})
            return
        timeout = step.parameters.timeout or self.config.navigation_timeout
        words = name_words(component.name)

        def known_route() -> Optional[Dict[str, Any]]:
            match = find_route_for_component(component.name, self.store.routes)
            if match is None:
                return None
            route, kind = match
            if route.url:
                data = self._goto(self._resolve_url(route.url), timeout, component=component, reasoning=f"route {kind} match")
            elif route.navigation_path and route.navigation_path[0].selector:
                data = self._click_selector(route.navigation_path[0].selector, timeout, component=component, target=route.name)
            else:
                return None
            data.update({"route": route.name, "match": kind})
            return data

        def href_pattern() -> Optional[Dict[str, Any]]:
            for word in words:
                if len(word) < self.relevance.min_keyword_length:
                    continue
                for selector in (f'a[href*="{word}"]', f'[data-testid*="{word}"]'):
                    if self._visible(self.driver.find_all(selector, limit=1)):
                        return self._click_selector(selector, timeout, component=component, target=component.name)
            return None

        outcome = run_chain((("known-route", known_route), ("href-pattern", href_pattern)), self._log)
        if outcome.strategy == "none":
            self._log(f"no route found for {component.name}; continuing on current page")
            result.data.update({"method": "current-page", "url": self._safe_url()})
            return
        result.data.update(outcome.data)
        result.data["method"] = outcome.strategy

    def _route_discovery(self, step: Step, result: StepResult) -> None:
        page = self._record_page()
        components = step.target_components
        if not components and self.store.change_context is not None:
            components = list(self.store.change_context.components)
        discovery = RouteDiscovery(
            self.store,
            self.oracle if self.oracle_ready else None,
            self.relevance,
            log_callback=self._log_callback,
        )
        outcome = discovery.discover_routes(page, components)
        result.data.update(
            {
                "harvested": outcome.harvested,
                "method": outcome.method,
                "relevant": [r.route.name for r in outcome.routes],
                "selected": [r.route.name for r in outcome.selected],
                "unmapped": outcome.unmapped_components,
            }
        )
        if step.generated or not outcome.selected:
            return
        new_steps = dynamic_route_steps(outcome.selected)
        self._enqueue(new_steps)
        result.data["appended"] = len(new_steps)

    # ------------------------------------------------------------------
    # oracle-backed actions
    # ------------------------------------------------------------------
    def _actionable(self, prompt: str, component: Component, action: str) -> Optional[tuple]:
        """Oracle decision above the confidence threshold, else None."""
        response = self.oracle.query(prompt)
        decision = response.decision()
        if decision is None:
            self._log(f"oracle gave no decision for {component.name} ({response.error_kind or 'empty'})")
            return None
        self.store.record_decision(
            OracleDecision(
                component=component.name,
                payload=response.data or {},
                action=action,
                confidence=decision.confidence,
            )
        )
        if response.actionable(self.oracle.confidence_threshold) is None:
            self._log(
                f"oracle decision for {component.name} not actionable "
                f"(should_act={decision.should_act}, confidence={decision.confidence:.2f})"
            )
            return None
        return decision, response

    def _decision_selector(self, decision: DecisionPayload, page: PageContext) -> Optional[str]:
        if decision.selector:
            return decision.selector
        ref = decision.target_ref
        if ref.isdigit():
            index = int(ref) - 1
            if 0 <= index < len(page.clickable_elements):
                return element_selector(page.clickable_elements[index])
        text = decision.element_text or ref
        return text_selector(text) if text else None

    def _oracle_navigate(self, step: Step, result: StepResult) -> None:
        component = step.component or Component(name=step.metadata.component or "Page")
        timeout = step.parameters.timeout or self.config.navigation_timeout
        page = self._record_page()

        def oracle() -> Optional[Dict[str, Any]]:
            if not self.oracle_ready:
                return None
            context = self.store.build_decision_context(component, page.url)
            picked = self._actionable(build_navigation_prompt(component, page, context), component, "navigate")
            if picked is None:
                return None
            decision, _ = picked
            selector = self._decision_selector(decision, page)
            if not selector:
                return None
            data = self._click_selector(
                selector,
                timeout,
                component=component,
                confidence=decision.confidence,
                reasoning=decision.reasoning,
                target=decision.element_text or selector,
            )
            data.update({"confidence": decision.confidence, "reasoning": decision.reasoning})
            return data

        def route_url() -> Optional[Dict[str, Any]]:
            if not step.parameters.url:
                return None
            return self._goto(self._resolve_url(step.parameters.url), timeout, component=component, reasoning="route url")

        def element_match() -> Optional[Dict[str, Any]]:
            for element in page.clickable_elements:
                label = element.text or element.aria_label
                if element.href and is_element_relevant_to_component(label, component.name):
                    return self._click_selector(element_selector(element), timeout, component=component, target=label)
            return None

        outcome = run_chain(
            (("oracle", oracle), ("route-url", route_url), ("element-match", element_match)),
            self._log,
        )
        result.data.update(outcome.data)
        result.data["method"] = outcome.strategy

    def _oracle_discover(self, step: Step, result: StepResult) -> None:
        component = step.component or Component(name=step.metadata.component or "Page")
        page = self._record_page()

        def oracle() -> Optional[Dict[str, Any]]:
            if not self.oracle_ready:
                return None
            picked = self._actionable(build_discovery_prompt(component, page), component, "discover")
            if picked is None:
                return None
            decision, response = picked
            verified: List[Dict[str, Any]] = []
            candidates = [e for e in (response.data or {}).get("elements") or [] if isinstance(e, dict)]
            selector = self._decision_selector(decision, page)
            if selector:
                candidates.insert(0, {"selector": selector, "text": decision.element_text})
            for candidate in candidates:
                css = candidate.get("selector")
                if not css:
                    continue
                visible = self._visible(self.driver.find_all(str(css), limit=5))
                if visible:
                    verified.append({"selector": css, "text": str(candidate.get("text") or ""), "count": len(visible)})
            if not verified:
                return None
            interactions = [i for i in (response.data or {}).get("interactions") or [] if isinstance(i, dict)]
            return {
                "found": True,
                "selector": verified[0]["selector"],
                "elements": verified,
                "interactions": interactions[:5],
                "confidence": decision.confidence,
            }

        outcome = run_chain([("oracle", oracle)] + self._discovery_strategies(component), self._log)
        data = outcome.data or {"found": False}
        self._record_discovery(component, outcome.strategy, data)
        result.data.update(data)
        result.data["method"] = outcome.strategy

    def _run_inline(self, steps: Sequence[Step]) -> List[Dict[str, Any]]:
        """Execute generated steps within the current step; oracle actions are not expanded."""
        executed: List[Dict[str, Any]] = []
        for sub in steps:
            if sub.action in ORACLE_ACTIONS:
                executed.append({"id": sub.id, "action": sub.action, "status": StepStatus.SKIPPED.value})
                continue
            sub_result = self.execute_step(sub)
            executed.append(
                {"id": sub.id, "action": sub.action, "status": sub_result.status.value, "error": sub_result.error}
            )
        return executed

    def _oracle_test(self, step: Step, result: StepResult) -> None:
        component = step.component or Component(name=step.metadata.component or "Page")
        timeout = self._timeout(step)
        page = self._record_page()

        def oracle() -> Optional[Dict[str, Any]]:
            if not self.oracle_ready:
                return None
            generated = self.step_generator.generate_with_oracle(page, component, "interaction-testing", step.max_steps)
            if not generated:
                return None
            return {"executed": self._run_inline(generated)}

        def heuristic() -> Optional[Dict[str, Any]]:
            data = self._exercise_elements(["buttons", "links"], component, timeout)
            return data if data["tested"] else None

        outcome = run_chain((("oracle", oracle), ("element-match", heuristic)), self._log)
        result.data.update(outcome.data)
        result.data["method"] = outcome.strategy

    def _oracle_generate_steps(self, step: Step, result: StepResult) -> None:
        page = self._record_page()
        generated = None
        if self.oracle_ready:
            generated = self.step_generator.generate_with_oracle(page, step.component, step.step_type, step.max_steps)
        method = "oracle"
        if generated is None:
            generated = self.step_generator.fallback_steps(page, step.component)
            method = "fallback"
        result.data.update({"method": method, "generated": len(generated)})
        if step.execute_immediately:
            result.data["executed"] = self._run_inline(generated)
        elif step.generated:
            self._log(f"step {step.id} was itself generated; not expanding further")
            result.data["appended"] = 0
        else:
            self._enqueue(generated)
            result.data["appended"] = len(generated)
