"""
Mark AI photo generations stuck in `processing` as failed.

A generation is only `processing` while its synchronous request runs. A row
that stays `processing` past the stale threshold (AI_PHOTO_STALE_AFTER_SECONDS)
was interrupted, e.g. by a process restart, and will never finish. The status
endpoint already reports such rows as failed; this script makes it permanent.

Usage:
    python scripts/fail_stuck_generations.py --dry-run
    python scripts/fail_stuck_generations.py --older-than 900
"""

import argparse
import sys
from datetime import timedelta
from pathlib import Path
from typing import List

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from domain.ai_photo import GenerationStatus, PhotoGeneration, VariantStatus
from domain.time import utc_now
from repositories.generation_repository import list_stuck_generations, save_terminal_state
from settings import get_settings

STUCK_ERROR_MESSAGE = "Generation interrupted before completion"


def fail_stuck_generations(older_than_seconds: float, *, dry_run: bool = False) -> List[PhotoGeneration]:
    """Return the stuck generations; mark each one failed unless dry_run."""

    now = utc_now()
    stuck = list_stuck_generations(now - timedelta(seconds=older_than_seconds))

    for generation in stuck:
        age = now - generation.created_at
        print(f"  {generation.generation_id}  lead={generation.lead_id}  age={age}")
        if dry_run:
            continue

        variants = tuple(
            v.failed() if v.status is VariantStatus.PENDING else v
            for v in generation.variants
        )
        updated = save_terminal_state(
            generation.generation_id,
            status=GenerationStatus.FAILED,
            variants=variants,
            error_message=generation.error_message or STUCK_ERROR_MESSAGE,
            processing_time_ms=None,
            completed_at=utc_now(),
        )
        if not updated:
            print("    [SKIPPED] already terminal")

    return stuck


def main() -> int:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="Mark AI photo generations stuck in processing as failed",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--older-than",
        type=float,
        default=None,
        help="Age in seconds after which a processing row is stuck (default: AI_PHOTO_STALE_AFTER_SECONDS)"
    )

    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="List stuck generations without updating them"
    )

    args = parser.parse_args()
    older_than = args.older_than or get_settings().stale_after_seconds

    try:
        print("=" * 60)
        print("STUCK AI PHOTO GENERATIONS")
        print("=" * 60)
        print(f"Older than: {older_than:.0f}s{'  (dry run)' if args.dry_run else ''}")
        print()

        stuck = fail_stuck_generations(older_than, dry_run=args.dry_run)

        print()
        if not stuck:
            print("No stuck generations found.")
        elif args.dry_run:
            print(f"{len(stuck)} generation(s) would be marked failed.")
        else:
            print(f"[SUCCESS] {len(stuck)} generation(s) processed.")
        print("=" * 60)
        return 0

    except KeyboardInterrupt:
        print("\n\nInterrupted by user")
        return 130

    except Exception as e:
        print(f"\nERROR: {e}", file=sys.stderr)
        import traceback
        traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
