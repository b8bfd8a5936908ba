"""Plan building and step execution."""

from .artifacts import FileArtifactSink, MemoryArtifactSink
from .driver import BrowserDriver
from .planner import ExplorationPlanner
from .playwright_driver import PlaywrightDriver
from .runner import StepExecutor
from .step_generator import StepGenerator, dynamic_route_steps

__all__ = [
    "FileArtifactSink",
    "MemoryArtifactSink",
    "BrowserDriver",
    "ExplorationPlanner",
    "PlaywrightDriver",
    "StepExecutor",
    "StepGenerator",
    "dynamic_route_steps",
]
