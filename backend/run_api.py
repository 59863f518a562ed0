#!/usr/bin/env python
"""
Run the IdSync API server.

Usage:
    uv run python run_api.py
    uv run python run_api.py --reload            # Development mode
    uv run python run_api.py --run-job full_scan # Run one job and exit
"""

import argparse
import logging

import uvicorn

from shared.config import get_settings
from modules.reconciliation.models import ScheduledJob


def run_job(job: ScheduledJob) -> None:
    """Run one reconciliation job in the foreground and print its summary."""
    from api.dependencies import get_container

    summary = get_container().reconciliation.run(job)
    print(summary.model_dump_json(indent=2))


def main():
    parser = argparse.ArgumentParser(description="Run IdSync API server")
    parser.add_argument("--reload", action="store_true", help="Enable auto-reload")
    parser.add_argument("--host", type=str, help="Host to bind to")
    parser.add_argument("--port", type=int, help="Port to bind to")
    parser.add_argument(
        "--run-job",
        choices=[job.value for job in ScheduledJob],
        help="Run a reconciliation job once instead of serving",
    )
    args = parser.parse_args()

    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.run_job:
        run_job(ScheduledJob(args.run_job))
        return

    uvicorn.run(
        "api:app",
        host=args.host or settings.host,
        port=args.port or settings.port,
        reload=args.reload or settings.reload,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
