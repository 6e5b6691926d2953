"""
Seed AI photo templates from a JSON file.

The file holds a list of template objects; each is upserted by `slug`:

    [
      {
        "slug": "pirata",
        "name": "Pirata",
        "description": "Fantasia de pirata",
        "preview_url": "/templates/pirata-preview.jpg",
        "template_image_url": "/templates/pirata.jpg",
        "prompt": null,
        "aspect_ratio": "3:4",
        "is_active": true,
        "sort_order": 1
      }
    ]

Relative image paths are resolved against APP_URL when a generation runs.

Usage:
    python scripts/seed_templates.py templates.json
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, List

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from repositories.template_repository import upsert_template

REQUIRED_FIELDS = ("slug", "name", "preview_url", "template_image_url")


def load_templates(path: Path) -> List[Dict[str, Any]]:
    """Read and validate the template list."""

    with path.open("r", encoding="utf-8") as f:
        data = json.load(f)

    if not isinstance(data, list):
        raise ValueError("Template file must contain a JSON list")

    for i, item in enumerate(data, start=1):
        if not isinstance(item, dict):
            raise ValueError(f"Template #{i} must be an object")
        missing = [field for field in REQUIRED_FIELDS if not item.get(field)]
        if missing:
            raise ValueError(f"Template #{i} is missing: {', '.join(missing)}")

    return data


def main() -> int:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="Upsert AI photo templates from a JSON file",
    )

    parser.add_argument(
        "file",
        help="Path to the templates JSON file"
    )

    args = parser.parse_args()

    try:
        templates = load_templates(Path(args.file))
        print(f"Seeding {len(templates)} template(s)...")

        for item in templates:
            template = upsert_template(item)
            state = "active" if template.is_active else "inactive"
            print(f"  [OK] {template.slug:<20} {template.name} ({state})")

        print(f"\n[SUCCESS] {len(templates)} template(s) upserted.")
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
