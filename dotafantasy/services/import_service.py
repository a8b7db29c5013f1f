"""
Import Service - Runs tournament imports in the background.

Only one import runs at a time; the HTTP layer polls the status.
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Optional, Dict, Any, Callable

from dotafantasy.models import TournamentBundle
from dotafantasy.services.importer import TournamentImporter, ImportOptions
from dotafantasy.types import ImportResultDict


class ImportService:
    """
    Service layer for triggering imports.
    Wraps TournamentImporter with single-flight background execution.
    """

    def __init__(self, importer_factory: Optional[Callable[[ImportOptions], TournamentImporter]] = None):
        """
        Args:
            importer_factory: Builds an importer for the given options
                (default: TournamentImporter with default clients and database)
        """
        self._importer_factory = importer_factory or (lambda options: TournamentImporter(options=options))

        # Import state
        self._import_lock = threading.Lock()
        self._is_importing = False
        self._current_page: Optional[str] = None
        self._last_result: Optional[ImportResultDict] = None
        self._last_error: Optional[str] = None
        self._executor = ThreadPoolExecutor(max_workers=1)

    def start_import(
        self,
        page_name: str,
        dry_run: bool = False,
        skip_matches: bool = False
    ) -> bool:
        """
        Start a background import of one tournament.

        Returns:
            True if started, False if an import is already running
        """
        with self._import_lock:
            if self._is_importing:
                return False
            self._is_importing = True
            self._current_page = page_name
            self._last_error = None
            self._last_result = None

        options = ImportOptions(dry_run=dry_run, skip_matches=skip_matches, force=True)

        def do_import():
            try:
                print(f"[*] Background import of {page_name} started...")
                result = self._importer_factory(options).import_tournament(page_name)
                self._last_result = result
                if result.get('errors'):
                    self._last_error = '; '.join(result['errors'])
                    print(f"[!] Background import of {page_name} failed")
                else:
                    print(f"[+] Background import of {page_name} completed")
            except Exception as e:
                self._last_error = str(e)
                print(f"[!] Background import failed: {e}")
                import traceback
                traceback.print_exc()
            finally:
                self._is_importing = False
                self._current_page = None

        self._executor.submit(do_import)
        return True

    def preview(self, page_name: str) -> TournamentBundle:
        """Fetch and map a tournament without writing (blocking)."""
        options = ImportOptions(dry_run=True, skip_matches=True)
        return self._importer_factory(options).preview_tournament(page_name)

    def is_importing(self) -> bool:
        """Check if an import is currently in progress."""
        return self._is_importing

    def status(self) -> Dict[str, Any]:
        """Get the state of the current or last import."""
        return {
            "is_importing": self._is_importing,
            "current_page": self._current_page,
            "last_result": self._last_result,
            "last_error": self._last_error,
        }

    def shutdown(self, wait: bool = True) -> None:
        """Stop the background worker."""
        self._executor.shutdown(wait=wait)


# Singleton instance
_import_service: Optional[ImportService] = None
_service_lock = threading.Lock()


def get_import_service() -> ImportService:
    """Get or create the import service singleton."""
    global _import_service
    if _import_service is None:
        with _service_lock:
            if _import_service is None:
                _import_service = ImportService()
    return _import_service
