"""
Identity & normalization engine.

Pure functions that turn raw provider records (Liquipedia, STRATZ) into
canonical records keyed by deterministic identifiers. Nothing in this
package performs I/O or reads ambient state; "now" is always passed in.
"""

from dotafantasy.mapping.identity import (
    deterministic_id,
    tournament_id,
    team_id,
    player_id,
    match_id,
)
from dotafantasy.mapping.classify import (
    classify_tier,
    position_to_role,
    infer_region,
    derive_status,
    team_tag,
    parse_prize_pool,
    parse_placement,
    parse_datetime,
    region_from_location,
)
from dotafantasy.mapping.assemble import (
    map_tournament,
    map_team,
    map_tournament_team,
    map_player,
    map_tournament_player,
    map_tournament_bundle,
    apply_group_assignments,
)

__all__ = [
    'deterministic_id',
    'tournament_id',
    'team_id',
    'player_id',
    'match_id',
    'classify_tier',
    'position_to_role',
    'infer_region',
    'derive_status',
    'team_tag',
    'parse_prize_pool',
    'parse_placement',
    'parse_datetime',
    'region_from_location',
    'map_tournament',
    'map_team',
    'map_tournament_team',
    'map_player',
    'map_tournament_player',
    'map_tournament_bundle',
    'apply_group_assignments',
]
