"""
Tournament importer.

Fetches a tournament from Liquipedia, maps it through the normalization
engine and upserts the records, then adds the league's games from STRATZ.

Import order:
1. Tournament page (infobox + TeamCards) and logos
2. Tournament, teams, tournament teams, players, tournament players
3. STRATZ games and group assignments (when the page has a league id)
4. Import timestamp
"""

import time
from datetime import datetime, timezone
from typing import Optional, List, Tuple

from dotafantasy import config
from dotafantasy.clients.exceptions import ProviderError
from dotafantasy.clients.liquipedia import LiquipediaClient
from dotafantasy.clients.stratz import StratzClient
from dotafantasy.mapping import map_tournament_bundle, tournament_id
from dotafantasy.mapping.matches import (
    TeamResolver,
    map_league_structure,
    map_matches,
    map_group_assignments,
)
from dotafantasy.models import TournamentBundle
from dotafantasy.storage import get_database, DatabaseInterface
from dotafantasy.types import ImportResultDict, RawTournamentDict

FLAGSHIP_PAGE = "The_International/{year}"


class ImportOptions:
    """Switches for a single import run."""

    def __init__(
        self,
        dry_run: bool = False,
        skip_matches: bool = False,
        skip_logos: bool = False,
        force: bool = False,
        verbose: bool = False
    ):
        """
        Args:
            dry_run: Map and count records without writing anything
            skip_matches: Do not fetch STRATZ games
            skip_logos: Do not fetch tournament and team logos
            force: Re-import tournaments that already exist
            verbose: Print every mapped team and player
        """
        self.dry_run = dry_run
        self.skip_matches = skip_matches
        self.skip_logos = skip_logos
        self.force = force
        self.verbose = verbose


class TournamentImporter:
    """
    Imports Liquipedia tournaments into the database.

    Every failure inside one tournament import is caught and reported in
    the result's errors; a failing tournament never stops a batch.
    """

    def __init__(
        self,
        database: Optional[DatabaseInterface] = None,
        liquipedia: Optional[LiquipediaClient] = None,
        stratz: Optional[StratzClient] = None,
        options: Optional[ImportOptions] = None
    ):
        self._db = database
        self.liquipedia = liquipedia or LiquipediaClient()
        self.stratz = stratz or StratzClient()
        self.options = options or ImportOptions()

    @property
    def db(self) -> DatabaseInterface:
        """Lazy initialization of the database from the factory."""
        if self._db is None:
            self._db = get_database()
        return self._db

    # =========================================================================
    # FETCH + MAP
    # =========================================================================

    def _fetch_logos(self, raw: RawTournamentDict) -> Optional[str]:
        """Fetch the tournament logo and store team logos on the participants."""
        logo_url = self.liquipedia.get_page_image(raw['pageName'])

        for participant in list(raw.get('directInvites') or []) + list(raw.get('qualifiedTeams') or []):
            name = participant.get('teamName')
            if name and not participant.get('logoUrl'):
                participant['logoUrl'] = self.liquipedia.get_team_logo(name)

        return logo_url

    def fetch_bundle(self, page_name: str) -> Tuple[RawTournamentDict, TournamentBundle]:
        """
        Fetch a tournament page and map it to canonical records.

        Returns:
            Tuple of (raw tournament, mapped bundle)

        Raises:
            ProviderError: If the page cannot be fetched
        """
        raw = self.liquipedia.get_tournament(page_name)

        logo_url = None
        if not self.options.skip_logos:
            logo_url = self._fetch_logos(raw)

        bundle = map_tournament_bundle(
            raw,
            logo_url=logo_url,
            now=datetime.now(timezone.utc),
            fantasy_value=config.DEFAULT_FANTASY_VALUE
        )
        return raw, bundle

    def preview_tournament(self, page_name: str) -> TournamentBundle:
        """Fetch and map a tournament without writing anything."""
        _, bundle = self.fetch_bundle(page_name)
        return bundle

    # =========================================================================
    # IMPORT
    # =========================================================================

    def _import_matches(self, bundle: TournamentBundle, league_id: int, result: ImportResultDict) -> None:
        """
        Fetch a league's games from STRATZ and save them with group assignments.

        A STRATZ failure is recorded in the result's errors; the tournament
        and roster stay saved and the import is retried on the next run.
        """
        league_tournament = bundle.tournament.id
        resolver = TeamResolver(team.name for team in bundle.teams)

        print(f"    [*] Fetching STRATZ matches for league {league_id}...")
        try:
            summaries = self.stratz.get_all_league_matches(league_id)
        except ProviderError as e:
            result['errors'].append(str(e))
            print(f"    [!] STRATZ matches unavailable: {e}")
            return

        structure = None
        try:
            league = self.stratz.get_league_info(league_id)
            structure = map_league_structure((league or {}).get('nodeGroups'))
        except ProviderError as e:
            print(f"    [!] League structure unavailable: {e}")

        matches = map_matches(league_tournament, summaries, resolver, structure)
        result['matches_imported'] = len(matches)

        assignments = {}
        if structure is not None:
            assignments = map_group_assignments(structure, summaries, resolver)

        if self.options.dry_run:
            linked = {link.team_id for link in bundle.tournament_teams}
            result['groups_updated'] = len(linked & set(assignments))
        else:
            self.db.save_matches(matches)
            if assignments:
                result['groups_updated'] = self.db.update_team_groups(league_tournament, assignments)

        print(f"    [+] {len(matches)} matches, {result['groups_updated']} group assignments")

    @staticmethod
    def _league_id(raw_league_id: Optional[str]) -> Optional[int]:
        """STRATZ league id from the infobox, when numeric."""
        value = str(raw_league_id or '').strip()
        return int(value) if value.isdigit() else None

    def import_tournament(self, page_name: str) -> ImportResultDict:
        """
        Import one tournament with its teams, rosters and games.

        Args:
            page_name: Liquipedia page name (e.g. "The_International/2024")

        Returns:
            ImportResultDict with counts and errors
        """
        result: ImportResultDict = {
            'success': False,
            'page_name': page_name,
            'tournament_id': None,
            'tournament_name': None,
            'teams_imported': 0,
            'players_imported': 0,
            'matches_imported': 0,
            'groups_updated': 0,
            'dry_run': self.options.dry_run,
            'skipped': False,
            'errors': [],
        }

        start_time = time.time()
        print(f"[*] Importing {page_name}{' (dry run)' if self.options.dry_run else ''}...")

        try:
            existing_id = tournament_id(page_name)
            if (not self.options.dry_run and not self.options.force
                    and self.db.tournament_exists(existing_id)
                    and self.db.is_import_complete(existing_id)):
                print(f"    [*] {page_name} already imported, use force to re-import")
                result['tournament_id'] = existing_id
                result['skipped'] = True
                result['success'] = True
                return result

            raw, bundle = self.fetch_bundle(page_name)
            tournament = bundle.tournament
            result['tournament_id'] = tournament.id
            result['tournament_name'] = tournament.name

            print(f"    [+] {tournament.name}: tier={tournament.tier}, status={tournament.status}, "
                  f"region={tournament.region}")

            if self.options.verbose:
                for team, link in zip(bundle.teams, bundle.tournament_teams):
                    print(f"    Team #{link.seed} {team.name} [{team.tag}] {link.group_name}")
                for player in bundle.players:
                    print(f"    Player {player.nickname} ({player.role or '-'})")

            if not self.options.dry_run:
                self.db.set_import_complete(tournament.id, False)
                self.db.save_tournaments([tournament])
                self.db.save_teams(bundle.teams)
                self.db.save_tournament_teams(bundle.tournament_teams)
                self.db.save_players(bundle.players)
                self.db.save_tournament_players(bundle.tournament_players)

            result['teams_imported'] = len(bundle.teams)
            result['players_imported'] = len(bundle.players)
            print(f"    [+] {len(bundle.teams)} teams, {len(bundle.players)} players")

            if not self.options.skip_matches:
                league_id = self._league_id(raw.get('leagueId'))
                if league_id is None:
                    print(f"    [*] No STRATZ league id on {page_name}, skipping matches")
                else:
                    if self.stratz.configured:
                        self._import_matches(bundle, league_id, result)
                    else:
                        print("    [!] STRATZ_API_TOKEN not set, skipping matches")

            if not self.options.dry_run:
                self.db.update_import_timestamp({
                    'page_name': page_name,
                    'teams': result['teams_imported'],
                    'players': result['players_imported'],
                    'matches': result['matches_imported'],
                })
                self.db.set_import_complete(tournament.id, not result['errors'])

            result['success'] = True
            elapsed = time.time() - start_time
            print(f"[+] Imported {page_name} in {elapsed:.1f}s")

        except Exception as e:
            result['errors'].append(str(e))
            print(f"[!] Import of {page_name} failed: {e}")

        return result

    def import_tier_year(self, tier: int, year: int, limit: int = 50) -> List[ImportResultDict]:
        """
        Import every tournament of a Liquipedia tier and year.

        Returns:
            One result per discovered page
        """
        pages = self.liquipedia.search_tournaments(tier, year, limit)
        print(f"[*] Found {len(pages)} tier {tier} tournaments in {year}")

        results = []
        for i, page_name in enumerate(pages):
            print(f"[*] Tournament {i + 1}/{len(pages)}")
            results.append(self.import_tournament(page_name))
        return results

    def import_flagship(self, years: List[int]) -> List[ImportResultDict]:
        """Import The International of each given year."""
        return [self.import_tournament(FLAGSHIP_PAGE.format(year=year)) for year in years]
