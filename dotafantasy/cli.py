"""
Command line importer.

Usage:
    dotafantasy-import tournament The_International/2024 --dry-run
    dotafantasy-import tier-year 1 2024 --list-only
    dotafantasy-import ti 2022 2023 2024 --skip-matches
"""

import argparse
import logging
import sys
from typing import List, Optional

from dotafantasy import config
from dotafantasy.services.importer import TournamentImporter, ImportOptions
from dotafantasy.types import ImportResultDict


def _add_import_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument('--dry-run', action='store_true',
                        help='Preview import without modifying database')
    parser.add_argument('--verbose', action='store_true',
                        help='Show detailed debug output')
    parser.add_argument('--skip-matches', action='store_true',
                        help='Skip importing matches from STRATZ')
    parser.add_argument('--skip-logos', action='store_true',
                        help='Skip fetching tournament and team logos')
    parser.add_argument('--force', action='store_true',
                        help='Re-import tournaments that already exist')


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='dotafantasy-import',
        description='Import Dota 2 tournaments from Liquipedia and STRATZ'
    )
    subparsers = parser.add_subparsers(dest='command', required=True)

    tournament = subparsers.add_parser('tournament', help='Import one tournament page')
    tournament.add_argument('page_name', help='Liquipedia page name (e.g. The_International/2024)')
    _add_import_flags(tournament)

    tier_year = subparsers.add_parser('tier-year', help='Import all tournaments of a tier and year')
    tier_year.add_argument('tier', type=int, choices=[1, 2, 3, 4], help='Liquipedia tier')
    tier_year.add_argument('year', type=int, help='Year (e.g. 2024)')
    tier_year.add_argument('--list-only', action='store_true',
                           help="Only list tournaments, don't import")
    tier_year.add_argument('--limit', type=int, default=50,
                           help='Maximum number of tournaments to process (default: 50)')
    _add_import_flags(tier_year)

    ti = subparsers.add_parser('ti', help='Import The International of the given years')
    ti.add_argument('years', type=int, nargs='+', help='Years (e.g. 2023 2024)')
    _add_import_flags(ti)

    return parser


def _print_summary(results: List[ImportResultDict]) -> int:
    """Print the batch summary and return the number of failures."""
    failed = [r for r in results if not r.get('success')]
    skipped = [r for r in results if r.get('skipped')]

    print("\n=== Summary ===")
    print(f"Tournaments: {len(results)}")
    print(f"Imported: {len(results) - len(failed) - len(skipped)}")
    print(f"Skipped: {len(skipped)}")
    print(f"Failed: {len(failed)}")
    print(f"Teams: {sum(r.get('teams_imported', 0) for r in results)}")
    print(f"Players: {sum(r.get('players_imported', 0) for r in results)}")
    print(f"Matches: {sum(r.get('matches_imported', 0) for r in results)}")

    if failed:
        print("\nFailed tournaments:")
        for r in failed:
            print(f"  - {r['page_name']}: {', '.join(r.get('errors', []))}")

    return len(failed)


def main(argv: Optional[List[str]] = None, importer: Optional[TournamentImporter] = None) -> int:
    """
    Run the importer CLI.

    Returns:
        Exit code: 0 when every import succeeded, 1 otherwise
    """
    args = build_parser().parse_args(argv)

    level = logging.DEBUG if args.verbose else getattr(logging, config.LOG_LEVEL.upper(), logging.INFO)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    options = ImportOptions(
        dry_run=args.dry_run,
        skip_matches=args.skip_matches,
        skip_logos=args.skip_logos,
        force=args.force,
        verbose=args.verbose
    )
    if importer is None:
        importer = TournamentImporter(options=options)
    else:
        importer.options = options

    if args.command == 'tournament':
        results = [importer.import_tournament(args.page_name)]

    elif args.command == 'tier-year':
        if args.list_only:
            pages = importer.liquipedia.search_tournaments(args.tier, args.year, args.limit)
            print(f"[*] Found {len(pages)} tier {args.tier} tournaments in {args.year}")
            for page_name in pages:
                print(f"    {page_name}")
            return 0
        results = importer.import_tier_year(args.tier, args.year, args.limit)

    else:
        results = importer.import_flagship(args.years)

    return 1 if _print_summary(results) else 0


if __name__ == '__main__':
    sys.exit(main())
