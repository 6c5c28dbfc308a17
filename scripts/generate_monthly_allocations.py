from __future__ import annotations

import argparse
import json
import os
import sys
from typing import Any, Dict

SCRIPT_DIR = os.path.dirname(os.path.abspath(__file__))
PROJECT_ROOT = os.path.abspath(os.path.join(SCRIPT_DIR, ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)


def load_env_file(env_path: str) -> None:
    if not os.path.exists(env_path):
        return
    with open(env_path, "r", encoding="utf-8") as env_file:
        for line in env_file:
            line = line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue
            key, value = line.split("=", 1)
            os.environ.setdefault(key, value)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Regenerate daily allocations for every editable branch target of a month."
    )
    parser.add_argument(
        "--year-month",
        required=True,
        help="Target month in YYYY-MM form.",
    )
    parser.add_argument(
        "--env-file",
        default=".env",
        help="Environment file path (default: .env).",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="List the targets that would be regenerated without writing allocations.",
    )
    return parser.parse_args()


def run_generation(year_month: str, dry_run: bool) -> Dict[str, Any]:
    from src.analytics.allocation import FROZEN_STATUSES
    from src.api.dependencies import get_targets_service
    from src.core.config import get_settings
    from src.core.errors import AppError
    from src.core.logging import configure_logging

    configure_logging(get_settings().log_level)
    service = get_targets_service()

    regenerated = []
    skipped = []
    failed = []
    for target in service.list_targets(year_month):
        if target.status in FROZEN_STATUSES:
            skipped.append({"targetId": target.id, "branchId": target.branch_id, "status": target.status})
            continue
        if dry_run:
            regenerated.append({"targetId": target.id, "branchId": target.branch_id, "days": 0})
            continue
        try:
            allocation_set = service.generate_allocations(target.id)
        except AppError as exc:
            failed.append({"targetId": target.id, "branchId": target.branch_id, "code": exc.code, "message": exc.message})
            continue
        regenerated.append(
            {
                "targetId": target.id,
                "branchId": target.branch_id,
                "days": len(allocation_set.allocations),
                "allocatedTotal": str(allocation_set.allocated_total),
            }
        )
    return {
        "yearMonth": year_month,
        "dryRun": dry_run,
        "regenerated": regenerated,
        "skipped": skipped,
        "failed": failed,
    }


def main() -> None:
    args = parse_args()
    load_env_file(args.env_file)
    result = run_generation(year_month=args.year_month, dry_run=args.dry_run)
    print(json.dumps(result, indent=2, sort_keys=True))
    if result["failed"]:
        sys.exit(1)


if __name__ == "__main__":
    main()
