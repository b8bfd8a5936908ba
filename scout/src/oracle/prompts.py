"""Prompt builders for oracle queries."""
from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

from scout.src.context.store import DecisionContext
from scout.src.utils.models import (
    ChangeContext,
    ClickableElement,
    Component,
    DiscoveredRoute,
    InteractionPattern,
    PageContext,
)

_TYPE_HINTS = (
    ("report", "Report/Dashboard component"),
    ("chart", "Data visualization component"),
    ("table", "Data table component"),
    ("test", "Test execution/results component"),
    ("detail", "Detailed view component"),
    ("summary", "Summary/overview component"),
    ("form", "Form/Input component"),
    ("modal", "Modal/Dialog component"),
    ("navigation", "Navigation/Menu component"),
    ("sidebar", "Sidebar/Panel component"),
)


def component_type_hint(component_name: str) -> str:
    name = (component_name or "").lower()
    for needle, hint in _TYPE_HINTS:
        if needle in name:
            return hint
    return "UI component"


def _join(values: Iterable[str], empty: str = "None") -> str:
    items = [value for value in values if value]
    return ", ".join(items) if items else empty


def _change_block(ctx: Optional[ChangeContext]) -> str:
    if ctx is None:
        return ""
    return (
        "Change Context:\n"
        f"- Title: {ctx.title}\n"
        f"- Branch: {ctx.branch or 'unknown'}\n"
        f"- Changed Files: {_join(f.filename for f in ctx.changed_files)}\n"
        f"- Components: {_join(c.name for c in ctx.components)}\n"
    )


def _history_block(context: DecisionContext, limit: int = 3) -> str:
    history = context.navigation_history[-limit:]
    if not history:
        return ""
    lines = [
        f"{i}. {nav.action} -> {nav.outcome.value} (confidence: {nav.confidence:.2f})"
        for i, nav in enumerate(history, start=1)
    ]
    return "Previous Navigation History:\n" + "\n".join(lines) + "\n"


def _element_lines(elements: Sequence[ClickableElement], limit: int) -> str:
    if not elements:
        return "No elements found"
    return "\n".join(
        f'{i}. {el.tag} - "{el.text[:80]}" (class: {el.class_name}, id: {el.element_id}, '
        f"data-testid: {el.data_test_id}, href: {el.href})"
        for i, el in enumerate(elements[:limit], start=1)
    )


def build_navigation_prompt(component: Component, page: PageContext, context: DecisionContext) -> str:
    hints = ""
    if context.known_mapping is not None:
        hints += f"Known route for this component: {context.known_mapping.route_name} ({context.known_mapping.route_url})\n"
    if context.similar_components:
        hints += "Similar components seen: " + _join(
            f"{s.component} -> {s.mapping.route_name}" for s in context.similar_components
        ) + "\n"

    return f"""You are a web navigation assistant. Pick the element most likely to lead to a specific UI component.

{_change_block(context.change_context)}
{_history_block(context)}
{hints}
Current Page Context:
- URL: {page.url}
- Title: {page.title}
- Main headings: {_join(page.headings)}

Target Component: {component.name}
Component Type: {component_type_hint(component.name)}
Component File: {component.file or "Unknown"}

Available Clickable Elements:
{_element_lines(page.clickable_elements, 25)}

Respond in JSON format:
{{
  "shouldClick": true/false,
  "elementIndex": number (1-based index from the list above, or 0 if none),
  "elementText": "text of the element to click",
  "selector": "CSS selector for the element",
  "reasoning": "why this element was chosen",
  "confidence": 0.0-1.0,
  "alternativeElements": [{{"index": number, "text": "text", "reasoning": "why"}}],
  "nextSteps": [{{"action": "action type", "description": "what to do next", "priority": "high/medium/low"}}]
}}

If no suitable element is found, set shouldClick to false and explain why in reasoning."""


def build_discovery_prompt(component: Component, page: PageContext) -> str:
    elements = ", ".join(f'{el.tag} - "{el.text[:40]}"' for el in page.clickable_elements[:10]) or "None"
    return f"""Analyze this page and determine if the "{component.name}" component is present and how to interact with it.

Current Page:
- URL: {page.url}
- Title: {page.title}
- Available Elements: {elements}

Component to Find: {component.name}
Component Type: {component_type_hint(component.name)}

Respond in JSON format:
{{
  "shouldAct": true/false,
  "found": true/false,
  "elementIndex": number (1-based, 0 if none),
  "elementText": "text of the best matching element",
  "selector": "CSS selector",
  "elements": [{{"selector": "CSS selector", "text": "element text", "confidence": 0.8, "reasoning": "why this matches"}}],
  "interactions": [{{"action": "click|hover|type", "selector": "CSS selector", "description": "what this does"}}],
  "confidence": 0.0-1.0,
  "reasoning": "explanation of findings"
}}"""


def _patterns_block(patterns: Sequence[InteractionPattern]) -> str:
    if not patterns:
        return ""
    lines = [f"- {p.category} ({p.interaction_type or 'any'}) on {p.component_type or 'page'}" for p in patterns]
    return "Interaction patterns that worked before:\n" + "\n".join(lines) + "\n"


def build_step_generation_prompt(
    step_type: str,
    context: DecisionContext,
    page: PageContext,
    max_steps: int,
    patterns: Sequence[InteractionPattern] = (),
) -> str:
    component = context.target_component
    component_block = ""
    if component is not None:
        component_block = (
            f"Target Component: {component.name}\n"
            f"Component File: {component.file or 'Unknown'}\n"
            f"Component Type: {component_type_hint(component.name)}\n"
        )
    history = context.navigation_history[-5:]
    history_block = ""
    if history:
        history_block = "Recent Navigation History:\n" + "\n".join(
            f"{i}. {nav.action} -> {nav.outcome.value} ({nav.target})" for i, nav in enumerate(history, start=1)
        ) + "\n"

    return f"""You are a test step generator. Generate the next {max_steps} {step_type} steps for this page based on the code change.

{_change_block(context.change_context)}
{component_block}
{history_block}
{_patterns_block(patterns)}
Current Page Context:
- URL: {context.current_url or page.url or "unknown"}
- Title: {page.title or "Unknown"}
- Available Interactive Elements:
{_element_lines(page.clickable_elements, 15)}

Focus on component-specific interactions, edge cases related to the change, and user workflow validation.

Respond in JSON format:
{{
  "steps": [
    {{
      "action": "click|type|wait|screenshot|scroll|hover|test-interactions|discover-component",
      "description": "human readable description",
      "selector": "CSS selector if applicable",
      "value": "text value if applicable",
      "timeout": 5000,
      "optional": true/false,
      "reasoning": "why this step matters",
      "priority": "high|medium|low",
      "expectedOutcome": "what should happen",
      "confidence": 0.0-1.0
    }}
  ],
  "reasoning": "overall strategy",
  "confidence": 0.0-1.0
}}"""


def build_route_relevance_prompt(ctx: ChangeContext, routes: Sequence[DiscoveredRoute]) -> str:
    lines: List[str] = []
    for i, route in enumerate(routes, start=1):
        component = route.components[0].name if route.components else "Unknown"
        lines.append(f"{i}. Component: {component}, Name: {route.name}, URL: {route.url}")
    return f"""Analyze which routes are most relevant to this code change and rank them by impact.

{_change_block(ctx)}
Available Routes:
{chr(10).join(lines) or "None"}

Determine which routes are most likely impacted, considering file paths, component names and the UI areas users touch.

Respond in JSON format:
{{
  "relevantRoutes": [
    {{"routeIndex": 1, "component": "ComponentName", "relevanceScore": 0.9, "reasoning": "why this route is relevant"}}
  ]
}}"""
