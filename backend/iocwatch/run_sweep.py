# backend/iocwatch/run_sweep.py
"""
One-shot sweep for cron-like schedulers:

    python -m iocwatch.run_sweep

Prints the SweepReport as JSON. Exit code is 0 even when individual
items failed; the report's `errors` field carries that.
"""
import asyncio

from iocwatch.core.logging_config import configure_logging
from iocwatch.db.init_db import init_db
from iocwatch.services.scanning.scan_orchestrator import scan_orchestrator


def main() -> None:
    configure_logging()
    init_db()
    report = asyncio.run(scan_orchestrator.run_sweep())
    print(report.model_dump_json(indent=2))


if __name__ == "__main__":
    main()
