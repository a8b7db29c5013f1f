"""Tests for entity assembly."""

from datetime import datetime, timedelta, timezone

import pytest

from dotafantasy.mapping import (
    map_tournament,
    map_team,
    map_tournament_team,
    map_player,
    map_tournament_player,
    map_tournament_bundle,
    apply_group_assignments,
    team_id,
    tournament_id,
    player_id,
    deterministic_id,
)
from dotafantasy.mapping.assemble import wiki_url, team_wiki_url


class TestMapTournament:
    """Tests for map_tournament()."""

    def test_flagship_tournament(self, sample_raw_tournament, now):
        """The International is pinned to tier ti."""
        tournament = map_tournament(sample_raw_tournament, now=now)

        assert tournament.id == tournament_id('The_International/2024')
        assert tournament.name == 'The International 2024'
        assert tournament.tier == 'ti'
        assert tournament.status == 'completed'
        assert tournament.prize_pool == 2776566.0
        assert tournament.start_date == datetime(2024, 9, 4, tzinfo=timezone.utc)
        assert tournament.updated_at == now

    def test_region_falls_back_to_location(self, sample_raw_tournament, now):
        """Without region keywords the first location segment is used."""
        tournament = map_tournament(sample_raw_tournament, now=now)
        assert tournament.region == 'Copenhagen'

    def test_region_inferred_from_notes(self, now):
        """Region keywords in notes win over location."""
        raw = {'pageName': 'DreamLeague/Season_22/CIS', 'notes': 'CIS closed qualifier', 'location': 'Online'}
        assert map_tournament(raw, now=now).region == 'Eastern Europe'

    def test_prize_pool_prefers_usd(self, now):
        """Resolved USD prize pool wins over the display value."""
        raw = {'pageName': 'X', 'prizePool': '€10,000', 'prizePoolUsd': 10800.0}
        assert map_tournament(raw, now=now).prize_pool == 10800.0

    def test_minimal_raw(self, now):
        """Only a page name is required."""
        tournament = map_tournament({'pageName': 'Some_Cup/2024'}, now=now)

        assert tournament.name == 'Some Cup/2024'
        assert tournament.tier == 'tier2'
        assert tournament.status == 'completed'
        assert tournament.prize_pool is None
        assert tournament.liquipedia_url == wiki_url('Some_Cup/2024')

    def test_upcoming_status(self, now):
        """Status is recomputed from dates and now."""
        raw = {'pageName': 'Future_Cup', 'startDate': (now + timedelta(days=3)).isoformat()}
        assert map_tournament(raw, now=now).status == 'upcoming'

    def test_logo_url(self, sample_raw_tournament, now):
        """Logo fetched separately is stored."""
        tournament = map_tournament(sample_raw_tournament, logo_url='https://x/logo.png', now=now)
        assert tournament.logo_url == 'https://x/logo.png'

    def test_missing_page_name_raises(self, now):
        """A raw tournament without page name cannot be keyed."""
        with pytest.raises(ValueError):
            map_tournament({'name': 'Nameless'}, now=now)


class TestMapTeam:
    """Tests for map_team() and map_tournament_team()."""

    def test_team_spirit(self, now):
        """Team Spirit gets its override tag and derived id."""
        team = map_team({'teamName': 'Team Spirit', 'qualifier': 'Invited'}, now=now)

        assert team.id == deterministic_id('team:team spirit')
        assert team.tag == 'TS'
        assert team.region == 'International'
        assert team.liquipedia_url == 'https://liquipedia.net/dota2/Team_Spirit'

    def test_team_url_is_escaped(self):
        """Team URLs are URL-escaped."""
        assert team_wiki_url('Natus Vincere/Ü') == 'https://liquipedia.net/dota2/Natus_Vincere%2F%C3%9C'

    def test_supplied_logo_and_url(self, now):
        """Supplied URLs are kept."""
        team = map_team({'teamName': 'OG', 'logoUrl': 'https://x/og.png', 'liquipediaUrl': 'https://x/OG'}, now=now)

        assert team.logo_url == 'https://x/og.png'
        assert team.liquipedia_url == 'https://x/OG'

    def test_seventeen_teams_split_nine_eight(self):
        """17 teams put 9 in Group A and 8 in Group B."""
        links = [
            map_tournament_team('t', {'teamName': f'Team {i}'}, i, 17)
            for i in range(17)
        ]

        assert [link.seed for link in links] == list(range(1, 18))
        assert sum(1 for link in links if link.group_name == 'Group A') == 9
        assert sum(1 for link in links if link.group_name == 'Group B') == 8
        assert links[8].group_name == 'Group A'
        assert links[9].group_name == 'Group B'

    def test_placement_parsed(self):
        """Placement text becomes an integer."""
        link = map_tournament_team('t', {'teamName': 'OG', 'placement': '2nd-3rd'}, 0, 1)
        assert link.placement == 2


class TestMapPlayer:
    """Tests for map_player() and map_tournament_player()."""

    def test_player(self, now):
        """Player gets a derived id and role."""
        player = map_player(
            {'nickname': 'Yatoro', 'position': 1, 'country': 'Ukraine'},
            'Team Spirit', team_id('Team Spirit'), now=now
        )

        assert player.id == player_id('Team Spirit', 'Yatoro')
        assert player.role == 'carry'
        assert player.country == 'Ukraine'
        assert player.team_id == team_id('Team Spirit')

    def test_player_without_position(self, now):
        """No position means no role."""
        player = map_player({'nickname': 'Satanic'}, 'Team Spirit', 'x', now=now)
        assert player.role is None

    def test_tournament_player_defaults(self):
        """Roster links are active with the baseline value."""
        link = map_tournament_player('t', 'p', 'team')

        assert link.is_active is True
        assert link.fantasy_value == 100.0


class TestMapTournamentBundle:
    """Tests for map_tournament_bundle()."""

    def test_bundle_counts(self, sample_raw_tournament, now):
        """Direct invites and qualified teams are mapped; substitutes skipped."""
        bundle = map_tournament_bundle(sample_raw_tournament, now=now)

        assert bundle.counts() == {
            'teams': 3,
            'tournament_teams': 3,
            'players': 12,
            'tournament_players': 12,
        }
        assert 'Satanic' not in [p.nickname for p in bundle.players]

    def test_invites_are_seeded_first(self, sample_raw_tournament, now):
        """Direct invites come before qualified teams."""
        bundle = map_tournament_bundle(sample_raw_tournament, now=now)

        assert [t.name for t in bundle.teams] == ['Team Spirit', 'Gaimin Gladiators', 'Xtreme Gaming']
        assert [link.group_name for link in bundle.tournament_teams] == ['Group A', 'Group A', 'Group B']

    def test_flagship_end_to_end(self, sample_raw_tournament, now):
        """TI 2024 with Team Spirit: tier ti, tag TS, id of team:team spirit."""
        bundle = map_tournament_bundle(sample_raw_tournament, now=now)
        spirit = bundle.teams[0]

        assert bundle.tournament.tier == 'ti'
        assert spirit.tag == 'TS'
        assert spirit.id == deterministic_id('team:team spirit')
        assert bundle.tournament_teams[0].placement == 1

    def test_links_use_tournament_id(self, sample_raw_tournament, now):
        """Every link references the tournament."""
        bundle = map_tournament_bundle(sample_raw_tournament, now=now)
        expected = tournament_id('The_International/2024')

        assert all(link.tournament_id == expected for link in bundle.tournament_teams)
        assert all(link.tournament_id == expected for link in bundle.tournament_players)

    def test_idempotent_except_updated_at(self, sample_raw_tournament, now):
        """Mapping twice gives identical records apart from updated_at."""
        first = map_tournament_bundle(sample_raw_tournament, now=now)
        second = map_tournament_bundle(sample_raw_tournament, now=now + timedelta(hours=1))

        assert first.tournament.model_dump(exclude={'updated_at'}) == second.tournament.model_dump(exclude={'updated_at'})
        assert [t.id for t in first.teams] == [t.id for t in second.teams]
        assert first.tournament_players == second.tournament_players

    def test_duplicates_collapse(self, now):
        """Repeated teams and players are kept once."""
        raw = {
            'pageName': 'Cup',
            'directInvites': [
                {'teamName': 'OG', 'players': [{'nickname': 'ana', 'position': 1}, {'nickname': 'ANA', 'position': 1}]},
            ],
            'qualifiedTeams': [
                {'teamName': 'og', 'players': []},
                {'teamName': '', 'players': [{'nickname': 'ghost'}]},
            ],
        }
        bundle = map_tournament_bundle(raw, now=now)

        assert len(bundle.teams) == 1
        assert len(bundle.players) == 1

    def test_padded_team_name_is_stripped(self, now):
        """Surrounding whitespace does not change a team's name or id."""
        raw = {
            'pageName': 'Cup',
            'directInvites': [{'teamName': ' OG ', 'players': [{'nickname': 'ana', 'position': 1}]}],
            'qualifiedTeams': [{'teamName': 'OG', 'players': []}],
        }
        bundle = map_tournament_bundle(raw, now=now)

        assert len(bundle.teams) == 1
        team = bundle.teams[0]
        assert team.name == 'OG'
        assert team.id == team_id('OG')
        assert bundle.tournament_teams[0].team_id == team_id('OG')
        assert bundle.players[0].team_id == team_id('OG')
        assert raw['directInvites'][0]['teamName'] == ' OG '

    def test_custom_fantasy_value(self, sample_raw_tournament, now):
        """Baseline value can be overridden."""
        bundle = map_tournament_bundle(sample_raw_tournament, now=now, fantasy_value=120.0)
        assert all(link.fantasy_value == 120.0 for link in bundle.tournament_players)


class TestApplyGroupAssignments:
    """Tests for apply_group_assignments()."""

    def test_assignments_replace_split(self, sample_raw_tournament, now):
        """Known groups replace the derived split."""
        bundle = map_tournament_bundle(sample_raw_tournament, now=now)
        xg = team_id('Xtreme Gaming')

        links = apply_group_assignments(bundle.tournament_teams, {xg: 'Group A'})

        assert [link.group_name for link in links] == ['Group A', 'Group A', 'Group A']
        # Input is not modified
        assert bundle.tournament_teams[2].group_name == 'Group B'

    def test_unassigned_keep_split(self, sample_raw_tournament, now):
        """Teams without assignment keep the derived group."""
        bundle = map_tournament_bundle(sample_raw_tournament, now=now)
        links = apply_group_assignments(bundle.tournament_teams, {})
        assert links == bundle.tournament_teams
