#!/usr/bin/env python3
"""
Fetch the suppression-adjusted status summary once and print it as JSON.

Mirrors the gateway's /api/status-summary endpoint but runs from a
workstation or CI job against the configured directory. Optionally also
resolves the down, warning and suppressed lists.
"""

import argparse
import asyncio
import json
import sys
import os
from pathlib import Path
from typing import Any, Dict, Optional

sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

from shared.config import get_config  # noqa: E402
from shared.logging import configure_logging  # noqa: E402
from service_status.app.adapters.sonar_client import SonarClient  # noqa: E402
from service_status.app.domain.status_service import StatusService  # noqa: E402
from service_status.app.domain.suppression import SuppressionStore  # noqa: E402


async def dump(
    *,
    suppressions_file: Optional[str],
    concurrency: int,
    include_lists: bool,
) -> Dict[str, Any]:
    """Run one refresh cycle and return the JSON-ready report."""
    config = get_config("status")
    client = SonarClient(
        config.sonar_endpoint,
        config.sonar_token,
        company_id=config.sonar_company_id,
        account_status_id=config.sonar_account_status_id,
        timeout=config.upstream_timeout_seconds,
    )
    service = StatusService(
        client,
        SuppressionStore(suppressions_file or config.suppressions_file),
        cache_ttl_ms=config.cache_ttl_ms,
        concurrency=concurrency,
    )

    try:
        summary = await service.get_summary()
        report: Dict[str, Any] = {
            "ok": summary.ok,
            "summary": summary.data.to_dict(),
        }
        if not summary.ok:
            report["error"] = summary.error

        if include_lists:
            for name, result in (
                ("down", await service.get_down_list()),
                ("warning", await service.get_warning_list()),
                ("suppressed", await service.get_suppressed_list()),
            ):
                rows = result.data if isinstance(result.data, list) else []
                report[name] = [record.to_dict() for record in rows]
        return report
    finally:
        await client.close()


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Print the suppression-adjusted equipment status summary.")
    parser.add_argument("--suppressions-file", default=None, help="Override the suppression list JSON path")
    parser.add_argument("--concurrency", type=int, default=5, help="Concurrent lookups for the suppressed list")
    parser.add_argument("--lists", action="store_true", help="Also include down, warning and suppressed lists")
    parser.add_argument("--log-level", default="warning", help="Log level for diagnostic output")
    parser.add_argument("--output", type=Path, default=None, help="Optional path to write the JSON report")
    return parser.parse_args()


def main() -> int:
    args = _parse_args()
    configure_logging("status", args.log_level)
    try:
        report = asyncio.run(
            dump(
                suppressions_file=args.suppressions_file,
                concurrency=args.concurrency,
                include_lists=args.lists,
            )
        )
    except KeyboardInterrupt:
        return 130
    except Exception as exc:  # pragma: no cover - CLI surface
        print(f"[status-summary] failed: {exc}", file=sys.stderr)
        return 1

    print(json.dumps(report, indent=2))

    if args.output:
        args.output.write_text(json.dumps(report, indent=2))

    return 0 if report["ok"] else 2


if __name__ == "__main__":
    raise SystemExit(main())
