"""
Shared test fixtures and configuration.

Provides reusable fixtures for all test files including database instances,
sample provider payloads and fake provider clients.
"""

import pytest
import os
import shutil
import tempfile
from datetime import datetime, timezone
from typing import Dict, Any, List
from unittest.mock import patch

from dotafantasy.services.cache import CacheService
from dotafantasy.storage import get_database, reset_database
from dotafantasy.storage.sqlite_db import SQLiteDatabase


# =============================================================================
# DATABASE FIXTURES
# =============================================================================

@pytest.fixture
def test_data_dir():
    """Provide a temporary directory for test data."""
    temp_dir = tempfile.mkdtemp(prefix="dotafantasy_test_")
    yield temp_dir

    # Cleanup
    if os.path.exists(temp_dir):
        try:
            shutil.rmtree(temp_dir)
        except PermissionError:
            pass  # Windows file locking, ignore


@pytest.fixture
def db_fixture(test_data_dir):
    """Provide a clean factory-managed test database instance."""
    with patch.dict(os.environ, {'DB_TYPE': 'sqlite', 'DATA_DIR': test_data_dir}, clear=False):
        reset_database()
        db = get_database()
        yield db
        reset_database()  # Close connection before cleanup


@pytest.fixture
def sqlite_db(test_data_dir):
    """Provide a standalone SQLite database."""
    db = SQLiteDatabase(db_path=os.path.join(test_data_dir, 'test.db'))
    db.initialize()
    yield db
    db.close()


@pytest.fixture
def cache():
    """Provide an empty cache that is not shared with other tests."""
    return CacheService(ttl=60)


# =============================================================================
# SAMPLE DATA FIXTURES
# =============================================================================

@pytest.fixture
def now() -> datetime:
    """Fixed reference instant."""
    return datetime(2024, 10, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def sample_raw_tournament() -> Dict[str, Any]:
    """Provide a raw tournament as produced by LiquipediaClient.get_tournament()."""
    return {
        'name': 'The International 2024',
        'pageName': 'The_International/2024',
        'tier': '1',
        'location': 'Copenhagen, Denmark',
        'prizePool': '$2,776,566',
        'startDate': '2024-09-04',
        'endDate': '2024-09-15',
        'leagueId': '16935',
        'format': 'Swiss-system group stage, double elimination playoffs',
        'directInvites': [
            {
                'teamName': 'Team Spirit',
                'qualifier': 'Invited',
                'placement': '1st',
                'players': [
                    {'nickname': 'Yatoro', 'position': 1, 'country': 'Ukraine'},
                    {'nickname': 'Larl', 'position': 2, 'country': 'Russia'},
                    {'nickname': 'Collapse', 'position': 3},
                    {'nickname': 'rue', 'position': 4},
                    {'nickname': 'Miposhka', 'position': 5},
                    {'nickname': 'Satanic', 'isSubstitute': True},
                ],
            },
        ],
        'qualifiedTeams': [
            {
                'teamName': 'Gaimin Gladiators',
                'qualifier': 'Western Europe Qualifier',
                'placement': '2nd',
                'players': [
                    {'nickname': 'dyrachyo', 'position': 1},
                    {'nickname': 'Quinn', 'position': 2},
                    {'nickname': 'Ace', 'position': 3},
                    {'nickname': 'tOfu', 'position': 4},
                    {'nickname': 'Seleri', 'position': 5},
                ],
            },
            {
                'teamName': 'Xtreme Gaming',
                'qualifier': 'China Qualifier',
                'players': [
                    {'nickname': 'Ame', 'position': 1},
                    {'nickname': 'Xm', 'position': 2},
                ],
            },
        ],
    }


@pytest.fixture
def sample_wikitext() -> str:
    """Provide a trimmed Liquipedia tournament page."""
    return """{{Infobox league
|name=The International 2024
|shortname=TI 2024
|liquipediatier=1
|publishertier=Major
|organizer=[[Valve Corporation|Valve]]
|city=Copenhagen
|country=Denmark
|venue=[[Royal Arena]]
|format=Swiss-system
|prizepoolusd={{:The_International/2024/prizepool}}
|sdate=2024-09-04
|edate=2024-09-15
|leagueid=16935
|team_number=16
}}

==Participants==
{{TeamCard
|team=Team Spirit
|p1=Yatoro|p1flag=ua
|p2=Larl|p2flag=ru
|p3=Collapse|p3flag=ru
|p4=rue|p4flag=ru
|p5=Miposhka|p5flag=ru
|s1=Satanic|s1flag=ru
|c=Silent
|qualifier=Invited
|placement=1
|inotes=Invited as the winner of [[Riyadh Masters]]<ref>{{cite web|url=x}}</ref>
}}
{{TeamCard
|team=Gaimin Gladiators
|p1=dyrachyo
|p2=Quinn
|p3=Ace
|p4=tOfu
|p5=Seleri
|qualifier=[[/Qualifier/Western Europe|Western Europe]]
}}
"""


@pytest.fixture
def sample_match_summaries() -> List[Dict[str, Any]]:
    """Provide STRATZ match summaries for the sample tournament."""
    return [
        {
            'matchId': 7900000001,
            'radiantTeam': {'id': 7119388, 'name': 'Team Spirit', 'tag': 'TSpirit'},
            'direTeam': {'id': 8599101, 'name': 'Gaimin Gladiators', 'tag': 'GG'},
            'radiantWin': True,
            'durationSeconds': 2400,
            'startDateTime': 1725440400,
            'seriesId': 901,
            'seriesType': 'BEST_OF_THREE',
        },
        {
            'matchId': 7900000002,
            'radiantTeam': {'id': 8599101, 'name': 'Gaimin.Gladiators', 'tag': 'GG'},
            'direTeam': {'id': 7119388, 'name': 'Team Spirit', 'tag': 'TSpirit'},
            'radiantWin': False,
            'durationSeconds': 1800,
            'startDateTime': 1725444000,
            'seriesId': 901,
            'seriesType': 'BEST_OF_THREE',
        },
        {
            'matchId': 7900000003,
            'radiantTeam': {'id': 111, 'name': 'Unknown Stack', 'tag': None},
            'direTeam': {'id': 7119388, 'name': 'Team Spirit', 'tag': 'TSpirit'},
            'radiantWin': True,
            'durationSeconds': 2000,
            'startDateTime': 1725447600,
            'seriesId': None,
            'seriesType': None,
        },
    ]


@pytest.fixture
def sample_node_groups() -> List[Dict[str, Any]]:
    """Provide STRATZ league node groups."""
    return [
        {
            'id': 1,
            'name': 'Group A',
            'nodeGroupType': 'ROUND_ROBIN',
            'nodes': [
                {'id': 10, 'name': None, 'nodeType': 'BEST_OF_THREE',
                 'teamOneId': 7119388, 'teamTwoId': 8599101, 'seriesId': 901},
            ],
        },
        {
            'id': 2,
            'name': 'Main Event',
            'nodeGroupType': 'DOUBLE_ELIMINATION_BRACKET',
            'nodes': [
                {'id': 20, 'name': 'Grand Final', 'nodeType': 'BEST_OF_FIVE',
                 'teamOneId': 7119388, 'teamTwoId': 8599101, 'seriesId': 902},
            ],
        },
    ]
