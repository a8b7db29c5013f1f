"""Tests for STRATZ match mapping."""

from datetime import datetime, timedelta, timezone

import pytest

from dotafantasy.mapping import team_id, match_id
from dotafantasy.mapping.matches import (
    TeamResolver,
    LeagueStructure,
    StageInfo,
    normalize_team_name,
    normalize_stage,
    parse_best_of,
    map_league_structure,
    map_match,
    map_matches,
    map_group_assignments,
)

TEAMS = ['Team Spirit', 'Gaimin Gladiators', 'PSG Quest', 'Team Liquid']


class TestTeamResolver:
    """Tests for TeamResolver."""

    def setup_method(self):
        self.resolver = TeamResolver(TEAMS)

    def test_normalize_team_name(self):
        """Separators become spaces."""
        assert normalize_team_name('PSG.Quest') == 'psg quest'
        assert normalize_team_name('  Team_Spirit ') == 'team spirit'
        assert normalize_team_name(None) == ''

    def test_exact_match(self):
        """Exact names match case-insensitively."""
        assert self.resolver.resolve('team spirit') == team_id('Team Spirit')

    def test_normalized_match(self):
        """Punctuation differences still match."""
        assert self.resolver.resolve('PSG.Quest') == team_id('PSG Quest')

    def test_substring_match(self):
        """Provider names containing ours match."""
        assert self.resolver.resolve('Gaimin Gladiators Esports') == team_id('Gaimin Gladiators')

    def test_word_match(self):
        """Half of the significant words are enough."""
        assert self.resolver.resolve('Liquid Gaming') == team_id('Team Liquid')

    def test_unknown(self):
        """Unknown teams are not resolved."""
        assert self.resolver.resolve('Virtus.pro') is None
        assert self.resolver.resolve(None) is None
        assert self.resolver.resolve('') is None

    def test_len(self):
        """Resolver counts distinct teams."""
        assert len(TeamResolver(['OG', 'og', '', 'Tundra Esports'])) == 2


class TestLeagueStructure:
    """Tests for stage and series mapping."""

    @pytest.mark.parametrize('name, group_type, expected', [
        ('Group A', 'ROUND_ROBIN', 'Group Stage'),
        ('Playoff', 'SINGLE_ELIMINATION', 'Playoffs'),
        ('Main Event', 'DOUBLE_ELIMINATION_BRACKET', 'Playoffs'),
        ('Showmatch', 'ROUND_ROBIN', 'Showmatch'),
        (None, None, None),
    ])
    def test_normalize_stage(self, name, group_type, expected):
        """Node groups map to stage names."""
        assert normalize_stage(name, group_type) == expected

    @pytest.mark.parametrize('node_type, expected', [
        ('BEST_OF_ONE', 1),
        ('BEST_OF_TWO', 2),
        ('BEST_OF_THREE', 3),
        ('BEST_OF_FIVE', 5),
        ('UNKNOWN', None),
        (None, None),
    ])
    def test_parse_best_of(self, node_type, expected):
        """Series length comes from the node type."""
        assert parse_best_of(node_type) == expected

    def test_map_league_structure(self, sample_node_groups):
        """Series get stage, round and best-of; round robin teams get groups."""
        structure = map_league_structure(sample_node_groups)

        assert structure.series[901] == StageInfo(stage='Group Stage', round='Round 1', best_of=3)
        assert structure.series[902] == StageInfo(stage='Playoffs', round='Grand Final', best_of=5)
        assert structure.team_groups == {7119388: 'Group A', 8599101: 'Group A'}

    def test_empty_structure(self):
        """Missing node groups give an empty structure."""
        structure = map_league_structure(None)

        assert structure.series == {}
        assert structure.team_groups == {}


class TestMapMatch:
    """Tests for map_match() and map_matches()."""

    def setup_method(self):
        self.resolver = TeamResolver(TEAMS)
        self.now = datetime(2024, 10, 1, tzinfo=timezone.utc)

    def test_radiant_win(self, sample_match_summaries, sample_node_groups):
        """Radiant is team 1; a Radiant win scores 1-0."""
        structure = map_league_structure(sample_node_groups)
        match = map_match('t', sample_match_summaries[0], self.resolver, structure, now=self.now)

        assert match.id == match_id(7900000001)
        assert match.team1_id == team_id('Team Spirit')
        assert match.team2_id == team_id('Gaimin Gladiators')
        assert match.winner_id == team_id('Team Spirit')
        assert (match.team1_score, match.team2_score) == (1, 0)
        assert match.status == 'completed'
        assert match.stage == 'Group Stage'
        assert match.best_of == 3
        assert match.updated_at == self.now

    def test_dire_win(self, sample_match_summaries):
        """A Dire win scores 0-1 for team 2."""
        match = map_match('t', sample_match_summaries[1], self.resolver, now=self.now)

        assert match.team1_id == team_id('Gaimin Gladiators')
        assert match.winner_id == team_id('Team Spirit')
        assert (match.team1_score, match.team2_score) == (0, 1)

    def test_timestamps(self, sample_match_summaries):
        """Start from unix seconds, end after the duration."""
        match = map_match('t', sample_match_summaries[0], self.resolver, now=self.now)

        started = datetime.fromtimestamp(1725440400, tz=timezone.utc)
        assert match.started_at == started
        assert match.ended_at == started + timedelta(seconds=2400)

    def test_unknown_result(self, sample_match_summaries):
        """Missing radiantWin leaves the winner open."""
        summary = dict(sample_match_summaries[0], radiantWin=None)
        match = map_match('t', summary, self.resolver, now=self.now)

        assert match.winner_id is None
        assert (match.team1_score, match.team2_score) == (0, 0)

    def test_unresolved_team_skipped(self, sample_match_summaries):
        """Games with a team outside the tournament are dropped."""
        assert map_match('t', sample_match_summaries[2], self.resolver, now=self.now) is None

    def test_map_matches_dedups(self, sample_match_summaries):
        """Repeated games are kept once; unresolved ones dropped."""
        summaries = sample_match_summaries + [sample_match_summaries[0]]
        matches = map_matches('t', summaries, self.resolver, now=self.now)

        assert [m.id for m in matches] == [match_id(7900000001), match_id(7900000002)]


class TestGroupAssignments:
    """Tests for map_group_assignments()."""

    def test_assignments_by_team_id(self, sample_match_summaries, sample_node_groups):
        """STRATZ team ids are resolved through the names seen in games."""
        structure = map_league_structure(sample_node_groups)
        assignments = map_group_assignments(structure, sample_match_summaries, TeamResolver(TEAMS))

        assert assignments == {
            team_id('Team Spirit'): 'Group A',
            team_id('Gaimin Gladiators'): 'Group A',
        }

    def test_unknown_stratz_team_ignored(self):
        """Group members never seen in a game are ignored."""
        structure = LeagueStructure(team_groups={42: 'Group B'})
        assert map_group_assignments(structure, [], TeamResolver(TEAMS)) == {}
