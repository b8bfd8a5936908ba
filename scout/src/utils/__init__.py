"""Utility exports for scout."""
from scout.src.utils.config import CONFIG, AppConfig, ContextConfig, ExplorerConfig, OracleConfig, RelevanceConfig
from scout.src.utils.models import ChangeContext, ChangedFile, Component, ExplorationPlan, RunResult, Step, StepResult

__all__ = [
    "CONFIG",
    "AppConfig",
    "ContextConfig",
    "ExplorerConfig",
    "OracleConfig",
    "RelevanceConfig",
    "ChangeContext",
    "ChangedFile",
    "Component",
    "ExplorationPlan",
    "RunResult",
    "Step",
    "StepResult",
]
