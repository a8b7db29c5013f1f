"""
Deterministic identifiers.

Every canonical record is keyed by a version-5 UUID computed from a
domain-qualified, lower-cased name. Repeated imports of the same real-world
entity therefore converge on the same primary key without a lookup table.

The domain prefix (tournament:, team:, player:, match:) is part of the
hashed key, so a team and a tournament sharing a display name never collide.
"""

import uuid
from typing import Optional

# Fixed namespace for every identifier (RFC 4122 DNS namespace).
# Changing it re-keys every stored row.
ID_NAMESPACE = uuid.UUID('6ba7b810-9dad-11d1-80b4-00c04fd430c8')


def _require(value: Optional[str], what: str) -> str:
    """Reject an absent identity input."""
    if value is None or not str(value).strip():
        raise ValueError(f"{what} is required to derive an identifier")
    return str(value)


def deterministic_id(key: str) -> str:
    """
    Derive a stable identifier from a string key.

    Args:
        key: Domain-qualified key, e.g. "team:team spirit"

    Returns:
        UUID string; the same key always yields the same UUID
    """
    return str(uuid.uuid5(ID_NAMESPACE, _require(key, 'key')))


def tournament_id(page_name: str) -> str:
    """Identifier of a tournament, from its Liquipedia page name."""
    return deterministic_id(f"tournament:{_require(page_name, 'page name').lower()}")


def team_id(team_name: str) -> str:
    """Identifier of a team, from its display name."""
    return deterministic_id(f"team:{_require(team_name, 'team name').lower()}")


def player_id(team_name: str, nickname: str) -> str:
    """
    Identifier of a player, from their current team name and nickname.

    A transfer to another team yields a different identifier; old and new
    identities are not merged.
    """
    team = _require(team_name, 'team name').lower()
    nick = _require(nickname, 'nickname').lower()
    return deterministic_id(f"player:{team}:{nick}")


def match_id(provider_match_id) -> str:
    """Identifier of a match, from the provider's numeric match id."""
    if provider_match_id is None:
        raise ValueError("match id is required to derive an identifier")
    return deterministic_id(f"match:{provider_match_id}")
