"""Read-only API routes for imported tournaments."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from dotafantasy.api.dependencies import get_db
from dotafantasy.storage import DatabaseInterface

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/tournaments")


def _require_tournament(db: DatabaseInterface, tournament_id: str) -> dict:
    tournament = db.get_tournament(tournament_id)
    if tournament is None:
        raise HTTPException(status_code=404, detail=f"Tournament '{tournament_id}' not found")
    return tournament


@router.get("")
async def list_tournaments(
    tier: Optional[str] = Query(default=None, description="Tier (ti, major, tier1, ...)"),
    db: DatabaseInterface = Depends(get_db),
):
    """List imported tournaments, newest first."""
    try:
        return db.get_tournaments(tier=tier)
    except Exception as e:
        logger.error(f"Error fetching tournaments: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch tournaments")


@router.get("/{tournament_id}")
async def get_tournament(
    tournament_id: str,
    db: DatabaseInterface = Depends(get_db),
):
    """Get one tournament.

    Args:
        tournament_id: Derived tournament id
    """
    try:
        return _require_tournament(db, tournament_id)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error fetching tournament {tournament_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch tournament")


@router.get("/{tournament_id}/teams")
async def list_tournament_teams(
    tournament_id: str,
    db: DatabaseInterface = Depends(get_db),
):
    """List a tournament's teams ordered by seed."""
    try:
        _require_tournament(db, tournament_id)
        return db.get_tournament_teams(tournament_id)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error fetching teams of {tournament_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch teams")


@router.get("/{tournament_id}/players")
async def list_tournament_players(
    tournament_id: str,
    db: DatabaseInterface = Depends(get_db),
):
    """List a tournament's roster with fantasy values."""
    try:
        _require_tournament(db, tournament_id)
        return db.get_tournament_players(tournament_id)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error fetching players of {tournament_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch players")


@router.get("/{tournament_id}/matches")
async def list_tournament_matches(
    tournament_id: str,
    stage: Optional[str] = Query(default=None, description="Stage (Group Stage, Playoffs, ...)"),
    db: DatabaseInterface = Depends(get_db),
):
    """List a tournament's games in play order."""
    try:
        _require_tournament(db, tournament_id)
        return db.get_matches(tournament_id, stage=stage)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error fetching matches of {tournament_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch matches")
