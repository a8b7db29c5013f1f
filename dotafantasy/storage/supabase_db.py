"""
Supabase Database Storage for Dota Fantasy.

Provides PostgreSQL-based cloud storage using Supabase's REST API.
Key differences from SQLite:
- Uses supabase-py client library (REST API)
- upsert() with on_conflict instead of INSERT ... ON CONFLICT
- Batch size limits (chunk large upserts at 500 rows)
- initialize() verifies tables exist (doesn't create them)

Requires: pip install supabase
Schema must be created first via scripts/supabase_schema.sql
"""

import json
import logging
import os
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any, Sequence

from pydantic import BaseModel

from .base import DatabaseInterface, IMPORT_STATE_KEY, IMPORT_COMPLETE, IMPORT_INCOMPLETE
from .exceptions import ConfigurationError, ConnectionError, QueryError
from dotafantasy.models import (
    Match,
    Player,
    Team,
    Tournament,
    TournamentPlayer,
    TournamentTeam,
)
from dotafantasy.types import ImportInfoDict

logger = logging.getLogger(__name__)

# Batch size for upsert operations
BATCH_SIZE = 500

COUNTED_TABLES = [
    'tournaments',
    'teams',
    'tournament_teams',
    'players',
    'tournament_players',
    'matches',
]


class SupabaseDatabase(DatabaseInterface):
    """
    Supabase cloud database implementation.

    Uses PostgreSQL via Supabase's REST API.
    Implements the DatabaseInterface abstract base class.
    """

    def __init__(self, url: Optional[str] = None, key: Optional[str] = None, client=None):
        """
        Create Supabase database instance.

        Reads configuration from environment variables unless given:
        - SUPABASE_URL: Project URL (e.g., https://your-project.supabase.co)
        - SUPABASE_KEY: Service role key (writes bypass row level security)

        Args:
            client: Pre-built supabase client (used by tests)
        """
        self._url = url or os.environ.get('SUPABASE_URL')
        self._key = key or os.environ.get('SUPABASE_KEY')
        self._client = client
        self._initialized = False

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def initialize(self) -> None:
        """Initialize the database connection and verify schema."""
        if self._initialized:
            return

        if self._client is None:
            if not self._url:
                raise ConfigurationError(
                    "SUPABASE_URL environment variable is required for Supabase backend"
                )
            if not self._key:
                raise ConfigurationError(
                    "SUPABASE_KEY environment variable is required for Supabase backend"
                )

        client = self._get_client()
        try:
            client.table('metadata').select('key').limit(1).execute()
        except Exception as e:
            raise ConnectionError(
                f"Failed to connect to Supabase or schema not initialized. "
                f"Run scripts/supabase_schema.sql in Supabase SQL Editor first. "
                f"Error: {e}"
            ) from e

        self._initialized = True

    def _get_client(self):
        """Get or create Supabase client."""
        if self._client is None:
            from supabase import create_client

            try:
                self._client = create_client(self._url, self._key)
            except Exception as e:
                raise ConnectionError(f"Failed to create Supabase client: {e}") from e

        return self._client

    def close(self) -> None:
        """Close database connection (no-op for Supabase REST API)."""
        # REST API doesn't maintain persistent connections
        self._client = None

    def health_check(self) -> bool:
        """Check if the database connection is healthy."""
        try:
            client = self._get_client()
            client.table('metadata').select('key').limit(1).execute()
            return True
        except Exception:
            return False

    # =========================================================================
    # WRITE OPERATIONS
    # =========================================================================

    def _upsert(self, table: str, records: Sequence[BaseModel], on_conflict: str) -> int:
        """
        Upsert records in batches of BATCH_SIZE.

        PostgREST bulk upserts need every row of a request to carry the same
        columns, and a column missing from the request is written as NULL.
        Rows are therefore grouped by their column set, so absent fields
        never overwrite stored values.
        """
        if not records:
            return 0

        client = self._get_client()
        rows = [record.to_row() for record in records]

        groups: Dict[frozenset, List[Dict[str, Any]]] = {}
        for row in rows:
            groups.setdefault(frozenset(row), []).append(row)

        for group in groups.values():
            for i in range(0, len(group), BATCH_SIZE):
                batch = group[i:i + BATCH_SIZE]
                try:
                    client.table(table).upsert(batch, on_conflict=on_conflict).execute()
                except Exception as e:
                    raise QueryError(f"Failed to upsert {table}: {e}", table=table) from e

        logger.debug(f"Upserted {len(rows)} rows into {table}")
        return len(rows)

    def save_tournaments(self, tournaments: List[Tournament]) -> int:
        """Save tournaments to database."""
        return self._upsert('tournaments', tournaments, 'id')

    def save_teams(self, teams: List[Team]) -> int:
        """Save teams to database."""
        return self._upsert('teams', teams, 'id')

    def save_tournament_teams(self, links: List[TournamentTeam]) -> int:
        return self._upsert('tournament_teams', links, 'tournament_id,team_id')

    def save_players(self, players: List[Player]) -> int:
        """Save players to database."""
        return self._upsert('players', players, 'id')

    def save_tournament_players(self, links: List[TournamentPlayer]) -> int:
        return self._upsert('tournament_players', links, 'tournament_id,player_id')

    def save_matches(self, matches: List[Match]) -> int:
        """Save matches to database."""
        return self._upsert('matches', matches, 'id')

    def update_team_groups(self, tournament_id: str, assignments: Dict[str, str]) -> int:
        """Update group names of linked teams."""
        client = self._get_client()
        updated = 0

        for team_id, group_name in assignments.items():
            try:
                response = (
                    client.table('tournament_teams')
                    .update({'group_name': group_name})
                    .eq('tournament_id', tournament_id)
                    .eq('team_id', team_id)
                    .execute()
                )
            except Exception as e:
                raise QueryError(f"Failed to update group of {team_id}: {e}", table='tournament_teams') from e
            updated += len(response.data or [])

        return updated

    def update_import_timestamp(self, stats: Optional[Dict[str, Any]] = None) -> None:
        """Update the last import timestamp."""
        client = self._get_client()
        now = datetime.now(timezone.utc).isoformat()

        rows = [{'key': 'last_import', 'value': now, 'updated_at': now}]
        if stats is not None:
            rows.append({
                'key': 'last_import_stats',
                'value': json.dumps(stats, ensure_ascii=False),
                'updated_at': now
            })

        client.table('metadata').upsert(rows, on_conflict='key').execute()

    def set_import_complete(self, tournament_id: str, complete: bool) -> None:
        """Record the import state of a tournament in the metadata table."""
        client = self._get_client()
        client.table('metadata').upsert({
            'key': IMPORT_STATE_KEY.format(tournament_id),
            'value': IMPORT_COMPLETE if complete else IMPORT_INCOMPLETE,
            'updated_at': datetime.now(timezone.utc).isoformat()
        }, on_conflict='key').execute()

    # =========================================================================
    # READ OPERATIONS
    # =========================================================================

    def is_import_complete(self, tournament_id: str) -> bool:
        client = self._get_client()
        response = (
            client.table('metadata')
            .select('value')
            .eq('key', IMPORT_STATE_KEY.format(tournament_id))
            .execute()
        )
        return bool(response.data) and response.data[0]['value'] == IMPORT_COMPLETE

    def tournament_exists(self, tournament_id: str) -> bool:
        client = self._get_client()
        response = (
            client.table('tournaments')
            .select('id')
            .eq('id', tournament_id)
            .limit(1)
            .execute()
        )
        return bool(response.data)

    def get_tournaments(
        self,
        tier: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """Get tournaments, optionally of one tier."""
        client = self._get_client()
        query = client.table('tournaments').select('*')

        if tier:
            query = query.eq('tier', tier)

        query = query.order('start_date', desc=True).order('name')

        response = query.execute()
        return response.data

    def get_tournament(self, tournament_id: str) -> Optional[Dict[str, Any]]:
        client = self._get_client()
        response = (
            client.table('tournaments')
            .select('*')
            .eq('id', tournament_id)
            .limit(1)
            .execute()
        )
        return response.data[0] if response.data else None

    def get_tournament_teams(self, tournament_id: str) -> List[Dict[str, Any]]:
        """Get teams linked to a tournament, ordered by seed."""
        client = self._get_client()
        response = (
            client.table('tournament_teams')
            .select('*, teams(name, tag, logo_url)')
            .eq('tournament_id', tournament_id)
            .order('seed')
            .execute()
        )

        teams = []
        for row in response.data:
            team = row.pop('teams', None) or {}
            row['team_name'] = team.get('name')
            row['team_tag'] = team.get('tag')
            row['team_logo_url'] = team.get('logo_url')
            teams.append(row)
        return teams

    def get_tournament_players(self, tournament_id: str) -> List[Dict[str, Any]]:
        """Get a tournament's roster."""
        client = self._get_client()
        response = (
            client.table('tournament_players')
            .select('*, players(nickname, role, country)')
            .eq('tournament_id', tournament_id)
            .order('team_id')
            .execute()
        )

        players = []
        for row in response.data:
            player = row.pop('players', None) or {}
            row['nickname'] = player.get('nickname')
            row['role'] = player.get('role')
            row['country'] = player.get('country')
            players.append(row)
        return players

    def get_matches(
        self,
        tournament_id: str,
        stage: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """Get a tournament's matches in play order."""
        client = self._get_client()
        query = client.table('matches').select('*').eq('tournament_id', tournament_id)

        if stage:
            query = query.eq('stage', stage)

        response = query.order('started_at').execute()
        return response.data

    def get_import_info(self) -> ImportInfoDict:
        """Get last import timestamp and table sizes."""
        client = self._get_client()

        response = (
            client.table('metadata')
            .select('value')
            .eq('key', 'last_import')
            .execute()
        )

        # Get stats (count queries)
        stats = {}
        for table in COUNTED_TABLES:
            count_response = (
                client.table(table)
                .select('*', count='exact')
                .limit(1)
                .execute()
            )
            stats[table] = count_response.count or 0

        return {
            'last_import': response.data[0]['value'] if response.data else None,
            'stats': stats
        }
