"""
Abstract base class defining the database interface.

All database implementations must inherit from this class and implement
all abstract methods. This ensures consistent behavior across backends.
"""

from abc import ABC, abstractmethod
from typing import Optional, List, Dict, Any

from dotafantasy.models import (
    Match,
    Player,
    Team,
    Tournament,
    TournamentPlayer,
    TournamentTeam,
)
from dotafantasy.types import ImportInfoDict

# Metadata key holding the import state of one tournament
IMPORT_STATE_KEY = 'import_state:{}'
IMPORT_COMPLETE = 'complete'
IMPORT_INCOMPLETE = 'incomplete'


class DatabaseInterface(ABC):
    """
    Abstract interface for tournament data storage.

    Every write is an upsert keyed by the record's identifier (or the
    composite key of a link table), so re-importing a tournament updates
    rows in place. Nothing is ever deleted.
    """

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    @abstractmethod
    def initialize(self) -> None:
        """
        Initialize the database connection and schema.

        Should be idempotent (safe to call multiple times).
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """Close database connections and clean up resources."""
        pass

    @abstractmethod
    def health_check(self) -> bool:
        """
        Check if the database connection is healthy.

        Returns:
            True if database is accessible, False otherwise
        """
        pass

    # =========================================================================
    # WRITE OPERATIONS
    # =========================================================================

    @abstractmethod
    def save_tournaments(self, tournaments: List[Tournament]) -> int:
        """
        Upsert tournaments by id.

        Returns:
            Number of tournaments saved
        """
        pass

    @abstractmethod
    def save_teams(self, teams: List[Team]) -> int:
        """Upsert teams by id. Returns number saved."""
        pass

    @abstractmethod
    def save_tournament_teams(self, links: List[TournamentTeam]) -> int:
        """Upsert tournament-team links by (tournament_id, team_id)."""
        pass

    @abstractmethod
    def save_players(self, players: List[Player]) -> int:
        """Upsert players by id. Returns number saved."""
        pass

    @abstractmethod
    def save_tournament_players(self, links: List[TournamentPlayer]) -> int:
        """Upsert roster links by (tournament_id, player_id)."""
        pass

    @abstractmethod
    def save_matches(self, matches: List[Match]) -> int:
        """Upsert matches by id. Returns number saved."""
        pass

    @abstractmethod
    def update_team_groups(self, tournament_id: str, assignments: Dict[str, str]) -> int:
        """
        Set the group of already linked teams.

        Args:
            tournament_id: Tournament the teams are linked to
            assignments: Team id -> group name

        Returns:
            Number of links updated (unknown teams are ignored)
        """
        pass

    @abstractmethod
    def update_import_timestamp(self, stats: Optional[Dict[str, Any]] = None) -> None:
        """
        Record that an import just completed.

        Args:
            stats: Counts of the import, stored alongside the timestamp
        """
        pass

    @abstractmethod
    def set_import_complete(self, tournament_id: str, complete: bool) -> None:
        """
        Record whether the last import of a tournament finished every step.

        Incomplete tournaments are imported again instead of being skipped.
        """
        pass

    # =========================================================================
    # READ OPERATIONS
    # =========================================================================

    @abstractmethod
    def tournament_exists(self, tournament_id: str) -> bool:
        """Check whether a tournament row exists."""
        pass

    @abstractmethod
    def is_import_complete(self, tournament_id: str) -> bool:
        """Check whether the last import of a tournament finished every step."""
        pass

    @abstractmethod
    def get_tournaments(
        self,
        tier: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """
        Get tournaments, newest start date first.

        Args:
            tier: Exact match on tier
        """
        pass

    @abstractmethod
    def get_tournament(self, tournament_id: str) -> Optional[Dict[str, Any]]:
        """Get one tournament or None."""
        pass

    @abstractmethod
    def get_tournament_teams(self, tournament_id: str) -> List[Dict[str, Any]]:
        """
        Get the teams linked to a tournament, ordered by seed.

        Each entry is the link row plus team_name, team_tag and team_logo_url.
        """
        pass

    @abstractmethod
    def get_tournament_players(self, tournament_id: str) -> List[Dict[str, Any]]:
        """
        Get a tournament's roster.

        Each entry is the link row plus nickname, role and country.
        """
        pass

    @abstractmethod
    def get_matches(
        self,
        tournament_id: str,
        stage: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """Get a tournament's matches, ordered by start time."""
        pass

    @abstractmethod
    def get_import_info(self) -> ImportInfoDict:
        """
        Get information about the last import.

        Returns:
            Dictionary with:
            - last_import: Optional[str] - ISO timestamp of last import
            - stats: Dict[str, int] - Row counts per table
        """
        pass
