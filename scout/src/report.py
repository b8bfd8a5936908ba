"""Run summary helpers."""
from __future__ import annotations

from typing import Dict, List

from scout.src.utils.models import RunResult, StepResult, StepStatus


def build_summary(result: RunResult) -> Dict[str, object]:
    """Return plan-level counts for a finished run."""

    steps: List[StepResult] = list(result.steps)
    failed = [step for step in steps if step.status == StepStatus.FAILED]
    skipped = [step for step in steps if step.status == StepStatus.SKIPPED]
    succeeded = [step for step in steps if step.status == StepStatus.SUCCESS]
    executed = len(steps)

    return {
        "plan_id": result.plan_id,
        "total": result.total_steps,
        "executed": executed,
        "success": len(succeeded),
        "failed": len(failed),
        "skipped": len(skipped),
        "pass_rate": round(len(succeeded) / executed, 3) if executed else 0.0,
        "aborted": result.aborted,
        "duration_ms": result.duration_ms,
        "final_url": result.final_url,
        "failures": [{"step_id": step.step_id, "error": step.error} for step in failed],
    }


def format_summary(summary: Dict[str, object]) -> str:
    line = (
        f"{summary['success']} succeeded, {summary['failed']} failed, {summary['skipped']} skipped "
        f"of {summary['executed']} executed ({summary['pass_rate']:.0%} pass rate)"
    )
    if summary["aborted"]:
        line += " - aborted on a required step failure"
    return line
