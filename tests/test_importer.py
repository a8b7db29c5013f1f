"""Tests for TournamentImporter."""

import pytest
from unittest.mock import Mock

from dotafantasy.clients.exceptions import ProviderError
from dotafantasy.mapping import tournament_id, team_id
from dotafantasy.services.importer import TournamentImporter, ImportOptions


@pytest.fixture
def liquipedia(sample_raw_tournament):
    """Fake Liquipedia client serving the sample tournament."""
    client = Mock()
    client.get_tournament.side_effect = lambda page_name: dict(sample_raw_tournament)
    client.get_page_image.return_value = 'https://liquipedia.net/ti2024.png'
    client.get_team_logo.return_value = None
    return client


@pytest.fixture
def stratz(sample_match_summaries, sample_node_groups):
    """Fake STRATZ client serving the sample league."""
    client = Mock()
    client.configured = True
    client.get_all_league_matches.return_value = sample_match_summaries
    client.get_league_info.return_value = {'id': 16935, 'nodeGroups': sample_node_groups}
    return client


def _importer(sqlite_db, liquipedia, stratz, **options):
    return TournamentImporter(
        database=sqlite_db,
        liquipedia=liquipedia,
        stratz=stratz,
        options=ImportOptions(**options)
    )


class TestImportTournament:
    """Tests for import_tournament()."""

    def test_import_writes_records(self, sqlite_db, liquipedia, stratz):
        """A full import stores the tournament, roster and games."""
        result = _importer(sqlite_db, liquipedia, stratz).import_tournament('The_International/2024')

        assert result['success'] is True
        assert result['errors'] == []
        assert result['tournament_id'] == tournament_id('The_International/2024')
        assert result['tournament_name'] == 'The International 2024'
        assert result['teams_imported'] == 3
        assert result['players_imported'] == 12
        assert result['matches_imported'] == 2
        assert result['groups_updated'] == 2

        info = sqlite_db.get_import_info()
        assert info['last_import'] is not None
        assert info['stats']['tournaments'] == 1
        assert info['stats']['teams'] == 3
        assert info['stats']['players'] == 12
        assert info['stats']['matches'] == 2

    def test_tournament_logo_stored(self, sqlite_db, liquipedia, stratz):
        """The page image becomes the tournament logo."""
        result = _importer(sqlite_db, liquipedia, stratz).import_tournament('The_International/2024')

        stored = sqlite_db.get_tournament(result['tournament_id'])
        assert stored['logo_url'] == 'https://liquipedia.net/ti2024.png'
        assert liquipedia.get_team_logo.call_count == 3

    def test_skip_logos(self, sqlite_db, liquipedia, stratz):
        """Logos are not fetched when skipped."""
        _importer(sqlite_db, liquipedia, stratz, skip_logos=True).import_tournament('The_International/2024')

        liquipedia.get_page_image.assert_not_called()
        liquipedia.get_team_logo.assert_not_called()

    def test_groups_from_league_structure(self, sqlite_db, liquipedia, stratz):
        """Round robin groups replace the derived split."""
        result = _importer(sqlite_db, liquipedia, stratz).import_tournament('The_International/2024')

        groups = {t['team_id']: t['group_name'] for t in sqlite_db.get_tournament_teams(result['tournament_id'])}
        assert groups[team_id('Team Spirit')] == 'Group A'
        assert groups[team_id('Gaimin Gladiators')] == 'Group A'
        assert groups[team_id('Xtreme Gaming')] == 'Group B'

    def test_dry_run_writes_nothing(self, sqlite_db, liquipedia, stratz):
        """Dry runs count records without storing them."""
        result = _importer(sqlite_db, liquipedia, stratz, dry_run=True).import_tournament('The_International/2024')

        assert result['success'] is True
        assert result['dry_run'] is True
        assert result['teams_imported'] == 3
        assert result['matches_imported'] == 2
        assert result['groups_updated'] == 2

        info = sqlite_db.get_import_info()
        assert info['last_import'] is None
        assert all(count == 0 for count in info['stats'].values())

    def test_existing_tournament_skipped(self, sqlite_db, liquipedia, stratz):
        """Already imported tournaments are not fetched again."""
        importer = _importer(sqlite_db, liquipedia, stratz)
        importer.import_tournament('The_International/2024')

        result = importer.import_tournament('The_International/2024')

        assert result['success'] is True
        assert result['skipped'] is True
        assert liquipedia.get_tournament.call_count == 1

    def test_force_reimports(self, sqlite_db, liquipedia, stratz):
        """Force re-imports without duplicating rows."""
        importer = _importer(sqlite_db, liquipedia, stratz, force=True)
        importer.import_tournament('The_International/2024')

        result = importer.import_tournament('The_International/2024')

        assert result['skipped'] is False
        assert liquipedia.get_tournament.call_count == 2
        assert sqlite_db.get_import_info()['stats']['players'] == 12

    def test_provider_error_reported(self, sqlite_db, liquipedia, stratz):
        """Fetch failures end up in the result's errors."""
        liquipedia.get_tournament.side_effect = ProviderError('Tournament page not found: Nope', 'liquipedia')

        result = _importer(sqlite_db, liquipedia, stratz).import_tournament('Nope')

        assert result['success'] is False
        assert result['errors'] == ['Tournament page not found: Nope']
        assert sqlite_db.tournament_exists(tournament_id('Nope')) is False

    def test_no_league_id_skips_matches(self, sqlite_db, liquipedia, stratz, sample_raw_tournament):
        """Pages without a league id get no games."""
        liquipedia.get_tournament.side_effect = lambda page_name: dict(sample_raw_tournament, leagueId=None)

        result = _importer(sqlite_db, liquipedia, stratz).import_tournament('The_International/2024')

        assert result['success'] is True
        assert result['matches_imported'] == 0
        stratz.get_all_league_matches.assert_not_called()

    def test_stratz_not_configured(self, sqlite_db, liquipedia, stratz):
        """Without a STRATZ token the roster still imports."""
        stratz.configured = False

        result = _importer(sqlite_db, liquipedia, stratz).import_tournament('The_International/2024')

        assert result['success'] is True
        assert result['teams_imported'] == 3
        assert result['matches_imported'] == 0
        stratz.get_all_league_matches.assert_not_called()

    def test_skip_matches(self, sqlite_db, liquipedia, stratz):
        """Games are not fetched when skipped."""
        result = _importer(sqlite_db, liquipedia, stratz, skip_matches=True).import_tournament('The_International/2024')

        assert result['matches_imported'] == 0
        stratz.get_all_league_matches.assert_not_called()

    def test_league_structure_failure_keeps_games(self, sqlite_db, liquipedia, stratz):
        """A missing league structure still stores the games."""
        stratz.get_league_info.side_effect = ProviderError('league not found', 'stratz')

        result = _importer(sqlite_db, liquipedia, stratz).import_tournament('The_International/2024')

        assert result['success'] is True
        assert result['matches_imported'] == 2
        assert result['groups_updated'] == 0

    def test_stratz_failure_reported(self, sqlite_db, liquipedia, stratz):
        """Game fetch failures are reported and the roster import still finishes."""
        stratz.get_all_league_matches.side_effect = ProviderError('STRATZ request failed: 503', 'stratz', 503)

        result = _importer(sqlite_db, liquipedia, stratz).import_tournament('The_International/2024')

        assert result['success'] is True
        assert result['errors'] == ['STRATZ request failed: 503']
        assert result['matches_imported'] == 0
        info = sqlite_db.get_import_info()
        assert info['last_import'] is not None
        assert info['stats']['teams'] == 3
        assert sqlite_db.is_import_complete(result['tournament_id']) is False

    def test_rerun_after_stratz_failure_imports_matches(self, sqlite_db, liquipedia, stratz):
        """A tournament whose games failed to import is not skipped on the next run."""
        importer = _importer(sqlite_db, liquipedia, stratz)
        stratz.get_all_league_matches.side_effect = ProviderError('STRATZ request failed: 503', 'stratz', 503)
        importer.import_tournament('The_International/2024')

        stratz.get_all_league_matches.side_effect = None
        result = importer.import_tournament('The_International/2024')

        assert result['skipped'] is False
        assert result['errors'] == []
        assert result['matches_imported'] == 2
        assert sqlite_db.get_import_info()['stats']['matches'] == 2
        assert sqlite_db.is_import_complete(result['tournament_id']) is True

    def test_interrupted_import_not_skipped(self, sqlite_db, liquipedia, stratz):
        """A tournament saved without a completed import is fetched again."""
        importer = _importer(sqlite_db, liquipedia, stratz, skip_matches=True)
        importer.import_tournament('The_International/2024')
        sqlite_db.set_import_complete(tournament_id('The_International/2024'), False)

        result = importer.import_tournament('The_International/2024')

        assert result['skipped'] is False
        assert liquipedia.get_tournament.call_count == 2


class TestLeagueId:
    """Tests for league id parsing."""

    @pytest.mark.parametrize('value, expected', [
        ('16935', 16935),
        (' 16935 ', 16935),
        ('', None),
        (None, None),
        ('TBD', None),
    ])
    def test_league_id(self, value, expected):
        """Only numeric league ids are used."""
        assert TournamentImporter._league_id(value) == expected


class TestBatchImports:
    """Tests for tier/year and flagship imports."""

    def test_import_tier_year(self, sqlite_db, liquipedia, stratz):
        """Every discovered page is imported."""
        liquipedia.search_tournaments.return_value = ['Cup_A', 'Cup_B']

        results = _importer(sqlite_db, liquipedia, stratz, skip_matches=True).import_tier_year(2, 2024, limit=10)

        liquipedia.search_tournaments.assert_called_once_with(2, 2024, 10)
        assert [r['page_name'] for r in results] == ['Cup_A', 'Cup_B']

    def test_failure_does_not_stop_batch(self, sqlite_db, liquipedia, stratz, sample_raw_tournament):
        """One failing tournament does not stop the others."""
        def get_tournament(page_name):
            if page_name == 'Broken':
                raise ProviderError('Tournament page not found: Broken', 'liquipedia')
            return dict(sample_raw_tournament, pageName=page_name)

        liquipedia.get_tournament.side_effect = get_tournament
        liquipedia.search_tournaments.return_value = ['Broken', 'Working']

        results = _importer(sqlite_db, liquipedia, stratz, skip_matches=True).import_tier_year(1, 2024)

        assert [r['success'] for r in results] == [False, True]

    def test_import_flagship(self, sqlite_db, liquipedia, stratz):
        """Flagship imports use the yearly page names."""
        results = _importer(sqlite_db, liquipedia, stratz, dry_run=True).import_flagship([2023, 2024])

        assert [r['page_name'] for r in results] == ['The_International/2023', 'The_International/2024']


class TestPreview:
    """Tests for preview_tournament()."""

    def test_preview_writes_nothing(self, sqlite_db, liquipedia, stratz):
        """Preview returns the mapped bundle only."""
        bundle = _importer(sqlite_db, liquipedia, stratz).preview_tournament('The_International/2024')

        assert bundle.counts() == {
            'teams': 3,
            'tournament_teams': 3,
            'players': 12,
            'tournament_players': 12,
        }
        assert bundle.tournament.tier == 'ti'
        assert sqlite_db.tournament_exists(bundle.tournament.id) is False
