"""Route harvesting and relevance ranking."""

from .page_context import extract_page_context
from .relevance import extract_keywords, keyword_score, rank_candidates, rank_routes
from .route_discovery import RankedRoute, RouteDiscovery, RouteDiscoveryResult

__all__ = [
    "extract_page_context",
    "extract_keywords",
    "keyword_score",
    "rank_candidates",
    "rank_routes",
    "RankedRoute",
    "RouteDiscovery",
    "RouteDiscoveryResult",
]
