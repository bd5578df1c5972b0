"""HTTP client for live football data (football-data.org v4)."""
import logging
from typing import Any, Dict, List, Optional

import httpx

from config import FOOTBALL_DATA_API_KEY, FOOTBALL_DATA_URL, DEFAULT_COMPETITION

logger = logging.getLogger(__name__)


class FootballDataError(RuntimeError):
    """Live data provider could not be reached or returned an error."""


class FootballDataClient:
    """Thin wrapper over the endpoints the realtime agent uses as tools."""

    def __init__(
        self,
        api_key: Optional[str] = FOOTBALL_DATA_API_KEY,
        base_url: str = FOOTBALL_DATA_URL,
        competition: str = DEFAULT_COMPETITION,
        timeout: float = 10.0,
        http_client: Optional[httpx.Client] = None
    ):
        if not api_key:
            raise ValueError("FOOTBALL_DATA_API_KEY environment variable is required")

        self.competition = competition
        self._client = http_client or httpx.Client(
            base_url=base_url,
            timeout=timeout,
            headers={"X-Auth-Token": api_key}
        )
        logger.info(f"Initialized FootballDataClient for competition {competition}")

    def leaderboard(self, competition: Optional[str] = None) -> List[Dict[str, Any]]:
        """Current league table rows (position, team, points, played)."""
        data = self._get(f"/competitions/{competition or self.competition}/standings")
        standings = data.get("standings") or []
        table = next((s["table"] for s in standings if s.get("type") == "TOTAL"), [])
        return [
            {
                "position": row["position"],
                "team": row["team"]["name"],
                "points": row["points"],
                "played": row["playedGames"],
                "goal_difference": row.get("goalDifference"),
            }
            for row in table
        ]

    def live_scores(self) -> List[Dict[str, Any]]:
        """Matches currently in play."""
        data = self._get("/matches", params={"status": "LIVE"})
        return [
            {
                "home": match["homeTeam"]["name"],
                "away": match["awayTeam"]["name"],
                "score": match.get("score", {}).get("fullTime", {}),
                "minute": match.get("minute"),
            }
            for match in data.get("matches", [])
        ]

    def player_stats(self, competition: Optional[str] = None, limit: int = 10) -> List[Dict[str, Any]]:
        """Top scorers for the competition's current season."""
        data = self._get(
            f"/competitions/{competition or self.competition}/scorers",
            params={"limit": limit}
        )
        return [
            {
                "player": scorer["player"]["name"],
                "team": scorer["team"]["name"],
                "goals": scorer.get("goals"),
                "assists": scorer.get("assists"),
            }
            for scorer in data.get("scorers", [])
        ]

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        try:
            response = self._client.get(path, params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise FootballDataError(
                f"Live data request {path} failed with status {e.response.status_code}"
            ) from e
        except httpx.RequestError as e:
            raise FootballDataError(f"Live data request {path} failed: {e}") from e

        logger.debug(f"Fetched live data from {path}")
        return response.json()
