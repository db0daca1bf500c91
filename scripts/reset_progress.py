#!/usr/bin/env python3
"""
reset_progress.py - Reset stored progress for a lesson, a course, or everything.

Usage:
  python scripts/reset_progress.py --course basics --lesson basics_l2
  python scripts/reset_progress.py --course basics
  python scripts/reset_progress.py --all
"""

import argparse
import logging
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from dotenv import load_dotenv
load_dotenv(PROJECT_ROOT / ".env")

from taika.config import load_settings
from taika.session import open_classroom

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description="Reset lesson progress")
    parser.add_argument("--config", type=Path, default=None, help="YAML settings file")
    parser.add_argument("--store", type=Path, default=None, help="Progress database (overrides settings)")
    parser.add_argument("--course", default=None, help="Course to reset")
    parser.add_argument("--lesson", default=None, help="Lesson to reset (requires --course)")
    parser.add_argument("--all", action="store_true", help="Reset every course")

    args = parser.parse_args()

    if args.all == bool(args.course):
        parser.error("give either --course or --all")
    if args.lesson and not args.course:
        parser.error("--lesson requires --course")

    settings = load_settings(args.config)
    if args.store:
        settings = settings.model_copy(update={"store_path": args.store})
    # Resets don't need the catalog
    settings = settings.model_copy(update={"catalog_path": None})
    logging.getLogger().setLevel(settings.log_level)

    session = open_classroom(settings)
    try:
        progress = session.progress
        if args.all:
            progress.reset_all_progress()
        elif args.lesson:
            progress.reset_lesson_progress(args.course, args.lesson)
        else:
            progress.reset_course_progress(args.course)
        session.scheduler.run_until_idle()
    finally:
        session.close()

    logger.info(f"Progress version is now {progress.version}")


if __name__ == "__main__":
    main()
