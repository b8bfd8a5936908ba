"""Session knowledge store."""

from .store import ComponentMapping, ContextStore, DecisionContext, SimilarComponent

__all__ = ["ComponentMapping", "ContextStore", "DecisionContext", "SimilarComponent"]
