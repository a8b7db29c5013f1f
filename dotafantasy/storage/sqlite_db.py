"""
SQLite Database Storage for Dota Fantasy.

Local storage used for development and tests, with:
- Upserts keyed by record id (or composite link keys)
- Atomic transactions for data safety
- Concurrent read access via WAL mode

This is the SQLite implementation of the DatabaseInterface.
"""

import json
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Iterator, List, Dict, Any, Sequence

from pydantic import BaseModel

from .base import DatabaseInterface, IMPORT_STATE_KEY, IMPORT_COMPLETE, IMPORT_INCOMPLETE
from .exceptions import QueryError, SchemaError
from dotafantasy.models import (
    Match,
    Player,
    Team,
    Tournament,
    TournamentPlayer,
    TournamentTeam,
)
from dotafantasy.types import ImportInfoDict

COUNTED_TABLES = [
    'tournaments',
    'teams',
    'tournament_teams',
    'players',
    'tournament_players',
    'matches',
]


class SQLiteDatabase(DatabaseInterface):
    """
    SQLite database for tournament data storage.
    Thread-safe with connection per thread.

    Implements the DatabaseInterface abstract base class.
    """

    SCHEMA_VERSION = 1

    def __init__(self, db_path: str = "data/dotafantasy.db"):
        """
        Create SQLite database instance.

        Args:
            db_path: Path to the SQLite database file
        """
        self.db_path = Path(db_path)
        self._local = threading.local()
        self._initialized = False

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def initialize(self) -> None:
        """Initialize the database connection and schema."""
        if self._initialized:
            return

        # Ensure parent directory exists
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        try:
            self._init_schema()
        except sqlite3.Error as e:
            raise SchemaError(f"Failed to initialize SQLite schema: {e}") from e
        self._initialized = True

    def close(self) -> None:
        """Close database connections and clean up resources."""
        if hasattr(self._local, 'conn') and self._local.conn is not None:
            self._local.conn.close()
            self._local.conn = None

    def health_check(self) -> bool:
        """Check if the database connection is healthy."""
        try:
            conn = self._get_connection()
            conn.execute("SELECT 1")
            return True
        except sqlite3.Error:
            return False

    # =========================================================================
    # CONNECTION MANAGEMENT
    # =========================================================================

    def _get_connection(self) -> sqlite3.Connection:
        """Get thread-local database connection."""
        if not hasattr(self._local, 'conn') or self._local.conn is None:
            self._local.conn = sqlite3.connect(
                str(self.db_path),
                check_same_thread=False,
                timeout=30.0
            )
            self._local.conn.row_factory = sqlite3.Row
            # Enable WAL mode for better concurrent access
            self._local.conn.execute("PRAGMA journal_mode=WAL")
            self._local.conn.execute("PRAGMA synchronous=NORMAL")
        return self._local.conn

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Context manager for database transactions."""
        conn = self._get_connection()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise

    def _init_schema(self) -> None:
        """Initialize database schema."""
        with self.transaction() as conn:
            conn.executescript('''
                -- Metadata table
                CREATE TABLE IF NOT EXISTS metadata (
                    key TEXT PRIMARY KEY,
                    value TEXT,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                );

                CREATE TABLE IF NOT EXISTS tournaments (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    tier TEXT NOT NULL,
                    region TEXT,
                    status TEXT NOT NULL,
                    prize_pool REAL,
                    start_date TEXT,
                    end_date TEXT,
                    logo_url TEXT,
                    liquipedia_url TEXT,
                    format TEXT,
                    updated_at TEXT
                );

                CREATE TABLE IF NOT EXISTS teams (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    tag TEXT,
                    region TEXT,
                    logo_url TEXT,
                    liquipedia_url TEXT,
                    updated_at TEXT
                );

                CREATE TABLE IF NOT EXISTS tournament_teams (
                    tournament_id TEXT NOT NULL,
                    team_id TEXT NOT NULL,
                    seed INTEGER,
                    group_name TEXT,
                    placement INTEGER,
                    prize_won REAL,
                    PRIMARY KEY (tournament_id, team_id)
                );

                CREATE TABLE IF NOT EXISTS players (
                    id TEXT PRIMARY KEY,
                    nickname TEXT NOT NULL,
                    role TEXT,
                    team_id TEXT,
                    country TEXT,
                    real_name TEXT,
                    updated_at TEXT
                );

                CREATE TABLE IF NOT EXISTS tournament_players (
                    tournament_id TEXT NOT NULL,
                    player_id TEXT NOT NULL,
                    team_id TEXT NOT NULL,
                    is_active INTEGER NOT NULL DEFAULT 1,
                    fantasy_value REAL NOT NULL DEFAULT 100,
                    PRIMARY KEY (tournament_id, player_id)
                );

                CREATE TABLE IF NOT EXISTS matches (
                    id TEXT PRIMARY KEY,
                    tournament_id TEXT NOT NULL,
                    team1_id TEXT NOT NULL,
                    team2_id TEXT NOT NULL,
                    winner_id TEXT,
                    team1_score INTEGER DEFAULT 0,
                    team2_score INTEGER DEFAULT 0,
                    scheduled_at TEXT,
                    started_at TEXT,
                    ended_at TEXT,
                    stage TEXT,
                    round TEXT,
                    best_of INTEGER,
                    status TEXT,
                    updated_at TEXT
                );

                -- Indexes for fast queries
                CREATE INDEX IF NOT EXISTS idx_tournaments_tier ON tournaments(tier);
                CREATE INDEX IF NOT EXISTS idx_tournaments_start ON tournaments(start_date);
                CREATE INDEX IF NOT EXISTS idx_players_team ON players(team_id);
                CREATE INDEX IF NOT EXISTS idx_matches_tournament ON matches(tournament_id);
                CREATE INDEX IF NOT EXISTS idx_matches_started ON matches(started_at);
            ''')

            conn.execute(
                "INSERT OR REPLACE INTO metadata (key, value) VALUES (?, ?)",
                ('schema_version', str(self.SCHEMA_VERSION))
            )

    # =========================================================================
    # WRITE OPERATIONS
    # =========================================================================

    def _upsert(self, table: str, records: Sequence[BaseModel], keys: Sequence[str]) -> int:
        """
        Insert or update records.

        Absent (None) fields are left out of the statement, so an import
        never blanks a value an earlier import stored.
        """
        if not records:
            return 0

        try:
            with self.transaction() as conn:
                for record in records:
                    row = record.to_row()
                    columns = list(row.keys())
                    placeholders = ', '.join('?' for _ in columns)
                    updates = [c for c in columns if c not in keys]
                    if updates:
                        conflict = 'DO UPDATE SET ' + ', '.join(f'{c} = excluded.{c}' for c in updates)
                    else:
                        conflict = 'DO NOTHING'

                    conn.execute(
                        f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({placeholders}) "
                        f"ON CONFLICT ({', '.join(keys)}) {conflict}",
                        [row[c] for c in columns]
                    )
        except sqlite3.Error as e:
            raise QueryError(f"Failed to upsert {table}: {e}", table=table) from e

        return len(records)

    def save_tournaments(self, tournaments: List[Tournament]) -> int:
        """Save tournaments. Returns count saved."""
        return self._upsert('tournaments', tournaments, ['id'])

    def save_teams(self, teams: List[Team]) -> int:
        """Save teams. Returns count saved."""
        return self._upsert('teams', teams, ['id'])

    def save_tournament_teams(self, links: List[TournamentTeam]) -> int:
        return self._upsert('tournament_teams', links, ['tournament_id', 'team_id'])

    def save_players(self, players: List[Player]) -> int:
        """Save players. Returns count saved."""
        return self._upsert('players', players, ['id'])

    def save_tournament_players(self, links: List[TournamentPlayer]) -> int:
        return self._upsert('tournament_players', links, ['tournament_id', 'player_id'])

    def save_matches(self, matches: List[Match]) -> int:
        """Save matches. Returns count saved."""
        return self._upsert('matches', matches, ['id'])

    def update_team_groups(self, tournament_id: str, assignments: Dict[str, str]) -> int:
        """Update group names of linked teams."""
        updated = 0
        with self.transaction() as conn:
            for team_id, group_name in assignments.items():
                cursor = conn.execute('''
                    UPDATE tournament_teams SET group_name = ?
                    WHERE tournament_id = ? AND team_id = ?
                ''', (group_name, tournament_id, team_id))
                updated += cursor.rowcount
        return updated

    def update_import_timestamp(self, stats: Optional[Dict[str, Any]] = None) -> None:
        """Update the last import timestamp."""
        with self.transaction() as conn:
            conn.execute('''
                INSERT OR REPLACE INTO metadata (key, value, updated_at)
                VALUES ('last_import', ?, CURRENT_TIMESTAMP)
            ''', (datetime.now(timezone.utc).isoformat(),))

            if stats is not None:
                conn.execute('''
                    INSERT OR REPLACE INTO metadata (key, value, updated_at)
                    VALUES ('last_import_stats', ?, CURRENT_TIMESTAMP)
                ''', (json.dumps(stats, ensure_ascii=False),))

    def set_import_complete(self, tournament_id: str, complete: bool) -> None:
        """Record the import state of a tournament in the metadata table."""
        with self.transaction() as conn:
            conn.execute('''
                INSERT OR REPLACE INTO metadata (key, value, updated_at)
                VALUES (?, ?, CURRENT_TIMESTAMP)
            ''', (IMPORT_STATE_KEY.format(tournament_id), IMPORT_COMPLETE if complete else IMPORT_INCOMPLETE))

    # =========================================================================
    # READ OPERATIONS
    # =========================================================================

    def tournament_exists(self, tournament_id: str) -> bool:
        conn = self._get_connection()
        row = conn.execute(
            "SELECT 1 FROM tournaments WHERE id = ?", (tournament_id,)
        ).fetchone()
        return row is not None

    def is_import_complete(self, tournament_id: str) -> bool:
        conn = self._get_connection()
        row = conn.execute(
            "SELECT value FROM metadata WHERE key = ?", (IMPORT_STATE_KEY.format(tournament_id),)
        ).fetchone()
        return row is not None and row['value'] == IMPORT_COMPLETE

    def get_tournaments(
        self,
        tier: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """Get tournaments, optionally of one tier."""
        conn = self._get_connection()

        query = "SELECT * FROM tournaments WHERE 1=1"
        params: List[Any] = []

        if tier:
            query += " AND tier = ?"
            params.append(tier)

        query += " ORDER BY start_date DESC, name"

        rows = conn.execute(query, params).fetchall()
        return [dict(row) for row in rows]

    def get_tournament(self, tournament_id: str) -> Optional[Dict[str, Any]]:
        conn = self._get_connection()
        row = conn.execute(
            "SELECT * FROM tournaments WHERE id = ?", (tournament_id,)
        ).fetchone()
        return dict(row) if row else None

    def get_tournament_teams(self, tournament_id: str) -> List[Dict[str, Any]]:
        """Get teams linked to a tournament, ordered by seed."""
        conn = self._get_connection()
        rows = conn.execute('''
            SELECT tt.*, t.name AS team_name, t.tag AS team_tag, t.logo_url AS team_logo_url
            FROM tournament_teams tt
            LEFT JOIN teams t ON t.id = tt.team_id
            WHERE tt.tournament_id = ?
            ORDER BY tt.seed
        ''', (tournament_id,)).fetchall()
        return [dict(row) for row in rows]

    def get_tournament_players(self, tournament_id: str) -> List[Dict[str, Any]]:
        """Get a tournament's roster, grouped by team."""
        conn = self._get_connection()
        rows = conn.execute('''
            SELECT tp.*, p.nickname, p.role, p.country
            FROM tournament_players tp
            LEFT JOIN players p ON p.id = tp.player_id
            WHERE tp.tournament_id = ?
            ORDER BY tp.team_id, p.role, p.nickname
        ''', (tournament_id,)).fetchall()

        players = []
        for row in rows:
            player = dict(row)
            player['is_active'] = bool(player['is_active'])
            players.append(player)
        return players

    def get_matches(
        self,
        tournament_id: str,
        stage: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """Get a tournament's matches in play order."""
        conn = self._get_connection()

        query = "SELECT * FROM matches WHERE tournament_id = ?"
        params: List[Any] = [tournament_id]

        if stage:
            query += " AND stage = ?"
            params.append(stage)

        query += " ORDER BY started_at, id"

        rows = conn.execute(query, params).fetchall()
        return [dict(row) for row in rows]

    def get_import_info(self) -> ImportInfoDict:
        """Get last import timestamp and table sizes."""
        conn = self._get_connection()

        row = conn.execute(
            "SELECT value FROM metadata WHERE key = 'last_import'"
        ).fetchone()

        stats = {}
        for table in COUNTED_TABLES:
            stats[table] = conn.execute(f'SELECT COUNT(*) FROM {table}').fetchone()[0]

        return {
            'last_import': row['value'] if row else None,
            'stats': stats
        }
