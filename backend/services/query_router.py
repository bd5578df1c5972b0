"""
Query Router for the Touchline Football Analyst.

Deterministic routing of an enhanced query to either the realtime strategy
(live scores, current standings) or the historical analysis strategy.
"""

import logging
from typing import List

from models.pipeline import RoutedQuery, REALTIME, HISTORICAL

logger = logging.getLogger(__name__)


class QueryRouter:
    """
    Pure keyword router. No I/O and no state.

    A query is realtime iff its lowercase text contains any of
    REALTIME_KEYWORDS as a substring ("today's" matches "today").
    Everything else is answered from historical data.
    """

    REALTIME = REALTIME
    HISTORICAL = HISTORICAL

    # Order matters only for reporting matched keywords
    REALTIME_KEYWORDS = ("current", "live", "today")

    # Keyword routing is a hard rule, not a model estimate
    RULE_CONFIDENCE = 1.0

    def route(self, query: str) -> RoutedQuery:
        """
        Choose the primary answering strategy for an enhanced query.

        Args:
            query: Enhanced query text

        Returns:
            RoutedQuery carrying the query, chosen strategy and matched keywords
        """
        matched = self._matched_keywords(query or "")
        strategy = self.REALTIME if matched else self.HISTORICAL

        logger.info(
            f"Routing: {strategy} (keywords: {', '.join(matched) if matched else 'none'}) - {(query or '')[:50]}"
        )
        return RoutedQuery(
            query=query,
            strategy=strategy,
            confidence=self.RULE_CONFIDENCE,
            matched_keywords=matched,
        )

    def _matched_keywords(self, query: str) -> List[str]:
        query_lower = query.lower()
        return [keyword for keyword in self.REALTIME_KEYWORDS if keyword in query_lower]
