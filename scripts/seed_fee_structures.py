from __future__ import annotations

import argparse
import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from config import get_settings_module

from src.school_admin.school_admin.common.datetime_utils import current_academic_year
from src.school_admin.school_admin.container import build_container
from src.school_admin.school_admin.core.logging_config import configure_logging
from src.school_admin.school_admin.fees.seed import seed_default_structures


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed the default class fee structures.")
    parser.add_argument("--academic-year", default=None, help="defaults to the current year")
    args = parser.parse_args()

    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    configure_logging(level=getattr(settings, "LOG_LEVEL", "INFO"), fmt=getattr(settings, "LOG_FORMAT", "text"))
    db_config = dict(settings.DB_CONFIG)

    academic_year = args.academic_year or current_academic_year()
    container = build_container(db_config=db_config, settings=settings)
    try:
        created, skipped = seed_default_structures(container.fee_structure_service, academic_year=academic_year)
    finally:
        container.close()

    print(
        f"OK: Seeded fee structures for {academic_year} -> "
        f"{db_config.get('user')}@{db_config.get('host')}:{db_config.get('port', 3306)}/{db_config.get('database')} "
        f"(created={created}, skipped={skipped})"
    )


if __name__ == "__main__":
    main()
