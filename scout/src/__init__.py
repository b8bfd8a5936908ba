"""scout package root exposing the exploration pipeline."""

from scout.src.context.store import ContextStore
from scout.src.discovery.route_discovery import RouteDiscovery
from scout.src.executor.planner import ExplorationPlanner
from scout.src.executor.runner import StepExecutor
from scout.src.oracle.gateway import OracleGateway
from scout.src.report import build_summary

__all__ = [
    "ContextStore",
    "RouteDiscovery",
    "ExplorationPlanner",
    "StepExecutor",
    "OracleGateway",
    "build_summary",
]
