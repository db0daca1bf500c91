#!/usr/bin/env python3
"""
progress_report.py - Print per-course progress from the local progress store.

Reads the course catalog and persisted progress, then prints one line per
course (status, percent, completed lessons, next lesson). Optionally
exports the same table as CSV.

Usage:
  python scripts/progress_report.py --catalog data/courses.yaml
  python scripts/progress_report.py --config taika.yaml --course basics
  python scripts/progress_report.py --catalog data/courses.yaml --csv out/progress.csv
"""

import argparse
import logging
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from dotenv import load_dotenv
load_dotenv(PROJECT_ROOT / ".env")

from taika.classroom import build_course_overview, build_overviews, overviews_to_frame
from taika.config import load_settings
from taika.session import open_classroom

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


STATUS_MARKS = {
    "completed": "✓",
    "in_progress": "→",
    "locked": "◌",
}


def main():
    parser = argparse.ArgumentParser(description="Report lesson progress per course")
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="YAML settings file"
    )
    parser.add_argument(
        "--catalog",
        type=Path,
        default=None,
        help="Course catalog (overrides settings)"
    )
    parser.add_argument(
        "--store",
        type=Path,
        default=None,
        help="Progress database (overrides settings)"
    )
    parser.add_argument(
        "--course",
        default=None,
        help="Only report this course"
    )
    parser.add_argument(
        "--csv",
        type=Path,
        default=None,
        help="Also write the report as CSV"
    )

    args = parser.parse_args()

    settings = load_settings(args.config)
    overrides = {}
    if args.catalog:
        overrides["catalog_path"] = args.catalog
    if args.store:
        overrides["store_path"] = args.store
    settings = settings.model_copy(update=overrides)
    logging.getLogger().setLevel(settings.log_level)

    if settings.catalog_path is None:
        logger.error("No course catalog configured (use --catalog or TAIKA_CATALOG_PATH)")
        sys.exit(1)

    session = open_classroom(settings)
    try:
        if args.course:
            overviews = [build_course_overview(session.progress, session.navigator, args.course)]
        else:
            overviews = build_overviews(session.progress, session.navigator)

        for o in overviews:
            mark = STATUS_MARKS.get(o.status.value, "?")
            slots = " ".join(f"{s:.0%}" for s in o.slots)
            print(
                f"{mark} {o.title} [{o.course_id}] {o.percent:.0%} "
                f"({o.completed_lessons}/{o.total_lessons} lessons) "
                f"next={o.next_lesson_id or '-'}  {slots}"
            )

        if args.csv:
            args.csv.parent.mkdir(parents=True, exist_ok=True)
            overviews_to_frame(overviews).to_csv(args.csv, index=False)
            logger.info(f"Saved report to: {args.csv}")
    finally:
        session.close()


if __name__ == "__main__":
    main()
