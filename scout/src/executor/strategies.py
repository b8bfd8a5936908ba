"""Ordered fallback strategies for oracle-backed steps."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Sequence, Tuple

from scout.src.utils.errors import ElementNotFound

StrategyFn = Callable[[], Optional[Dict[str, Any]]]


@dataclass(slots=True)
class StrategyOutcome:
    strategy: str
    data: Dict[str, Any]


def run_chain(
    strategies: Sequence[Tuple[str, StrategyFn]],
    log: Optional[Callable[[str], None]] = None,
) -> StrategyOutcome:
    """
    Evaluate strategies in order until one returns a result.

    A strategy returns None when it has nothing to offer; ElementNotFound is
    treated the same way. Driver failures propagate to the step boundary.
    When every strategy comes back empty the outcome is an empty "none"
    result, which still counts as a successful step.
    """
    for name, strategy in strategies:
        try:
            data = strategy()
        except ElementNotFound as exc:
            if log:
                log(f"{name}: {exc}")
            data = None
        if data is not None:
            return StrategyOutcome(strategy=name, data=data)
        if log:
            log(f"{name}: no result, trying next strategy")
    return StrategyOutcome(strategy="none", data={})
