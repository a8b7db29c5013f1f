"""
Dota Fantasy - FastAPI Application

Provides the tournament import endpoints and read access to imported data.
"""

import logging
import threading
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from dotafantasy import config
from dotafantasy.api.routes import router as tournaments_router
from dotafantasy.clients.exceptions import ProviderError
from dotafantasy.services.cache import get_cache_service
from dotafantasy.services.import_service import get_import_service
from dotafantasy.storage import get_database

logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)

import_service = get_import_service()


# ============================================================================
# RATE LIMITING
# ============================================================================

class RateLimiter:
    """Simple rate limiter for the import endpoint."""

    def __init__(self, cooldown_seconds: int = 300):
        """
        Initialize rate limiter.

        Args:
            cooldown_seconds: Minimum seconds between allowed requests (default 5 min)
        """
        self.cooldown_seconds = cooldown_seconds
        self._last_request: Optional[datetime] = None
        self._lock = threading.Lock()

    def try_acquire(self) -> tuple[bool, int]:
        """
        Try to acquire rate limit.

        Returns:
            Tuple of (allowed: bool, wait_seconds: int)
            - If allowed, wait_seconds is 0
            - If not allowed, wait_seconds is how long to wait
        """
        with self._lock:
            now = datetime.now()

            if self._last_request is None:
                self._last_request = now
                return True, 0

            elapsed = (now - self._last_request).total_seconds()

            if elapsed >= self.cooldown_seconds:
                self._last_request = now
                return True, 0

            wait_seconds = int(self.cooldown_seconds - elapsed)
            return False, wait_seconds

    def reset(self) -> None:
        """Reset the rate limiter (for testing)."""
        with self._lock:
            self._last_request = None


# Rate limiter for import endpoint
import_rate_limiter = RateLimiter(cooldown_seconds=config.IMPORT_COOLDOWN_SECONDS)


class ImportRequest(BaseModel):
    """Body of POST /api/import."""
    page_name: str
    dry_run: bool = False
    skip_matches: bool = False


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    print("[*] Checking database...")
    info = get_database().get_import_info()

    if info.get('last_import'):
        print(f"[+] Last import: {info['last_import']}")
    else:
        print("[*] No import yet. Run dotafantasy-import or POST /api/import")

    print("[*] App is ready.")

    yield

    print("[*] Shutting down...")
    import_service.shutdown(wait=False)


# Initialize FastAPI app with lifespan
app = FastAPI(
    title="Dota Fantasy",
    description="Dota 2 tournament import backend for a fantasy league",
    version="1.0.0",
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(tournaments_router)


@app.post("/api/import")
async def start_import(request: ImportRequest):
    """
    Start a background import of one Liquipedia tournament page.

    Rate limited to once per IMPORT_COOLDOWN_SECONDS to respect the
    provider rate limits.
    """
    try:
        # Check if already importing
        if import_service.is_importing():
            return {
                "status": "in_progress",
                "message": "Import already in progress"
            }

        # Check rate limit
        allowed, wait_seconds = import_rate_limiter.try_acquire()
        if not allowed:
            return {
                "status": "rate_limited",
                "message": f"Please wait {wait_seconds} seconds before importing again",
                "retry_after": wait_seconds
            }

        started = import_service.start_import(
            request.page_name,
            dry_run=request.dry_run,
            skip_matches=request.skip_matches
        )
        if started:
            return {
                "status": "started",
                "message": f"Import of {request.page_name} started in background. This may take several minutes."
            }
        else:
            return {
                "status": "in_progress",
                "message": "Import already in progress"
            }

    except Exception as e:
        print(f"[API] Error in /api/import: {e}")
        import traceback
        traceback.print_exc()
        raise HTTPException(status_code=500, detail=str(e))


@app.get("/api/import-status")
async def import_status():
    """Check import status and the result of the last import."""
    result = import_service.status()
    result["database"] = get_database().get_import_info()
    return result


@app.get("/api/preview/{page_name:path}")
def preview_tournament(page_name: str):
    """
    Fetch and map a tournament page without writing it.

    Example: /api/preview/The_International/2024
    """
    try:
        bundle = import_service.preview(page_name)
        return {
            "tournament": bundle.tournament.model_dump(mode="json"),
            "teams": [team.model_dump(mode="json") for team in bundle.teams],
            "tournament_teams": [link.model_dump(mode="json") for link in bundle.tournament_teams],
            "players": [player.model_dump(mode="json") for player in bundle.players],
            "counts": bundle.counts(),
        }
    except ProviderError as e:
        raise HTTPException(status_code=502, detail=str(e))
    except Exception as e:
        print(f"[API] Error in /api/preview/{page_name}: {e}")
        import traceback
        traceback.print_exc()
        raise HTTPException(status_code=500, detail=str(e))


@app.get("/health")
async def health():
    """Health check endpoint."""
    db = get_database()
    return {
        "status": "ok",
        "database": db.health_check(),
        "is_importing": import_service.is_importing(),
        "import": db.get_import_info(),
        "cache": get_cache_service().stats(),
    }


# Run with: uvicorn dotafantasy.main:app --reload
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=config.HOST, port=config.PORT)
