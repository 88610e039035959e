#!/usr/bin/env python3
"""
Open N connections in parallel through one shared connection factory.

Every worker calls acquire() on the same DriverManagerConnectionFactory,
closes what it got, and records the outcome in an EventLog. Close errors
are collected and reported together as one SQLErrorList.

Usage:
  python scripts/concurrent_acquire.py --url postgresql://db.local:5432/app --user app --password app
  Or set env: DB_URL, DB_USER, DB_PASSWORD, CONCURRENT
"""

import argparse
import logging
import os
import sys
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any

from pydbcp.core.diagnostics import EventLog, EventLogHandler
from pydbcp.core.exceptions import SQLErrorList
from pydbcp.core.pool import DriverManagerConnectionFactory


def do_acquire(
    factory: DriverManagerConnectionFactory,
    index: int,
) -> tuple[int, Any, Exception | None]:
    """Acquire one connection; return (index, connection or None, error or None)."""
    try:
        return (index, factory.acquire(), None)
    except Exception as e:
        return (index, None, e)


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Acquire N connections in parallel from one factory."
    )
    parser.add_argument("--url", default=os.environ.get("DB_URL", ""), help="Driver url")
    parser.add_argument("--user", default=os.environ.get("DB_USER") or None)
    parser.add_argument("--password", default=os.environ.get("DB_PASSWORD"))
    parser.add_argument(
        "--concurrent",
        type=int,
        default=int(os.environ.get("CONCURRENT", "10")),
        help="Number of parallel acquires (default 10)",
    )
    args = parser.parse_args()

    if not args.url:
        print("Error: --url or DB_URL env required", file=sys.stderr)
        sys.exit(1)

    event_log = EventLog()
    logging.basicConfig(level=logging.INFO)
    logging.getLogger("pydbcp").addHandler(EventLogHandler(event_log, logging.DEBUG))
    logging.getLogger("pydbcp").setLevel(logging.DEBUG)

    factory = DriverManagerConnectionFactory(
        args.url, user=args.user, password=args.password
    )
    print(f"Acquiring {args.concurrent} connections from {factory!r}")
    print("---")

    conns: list[Any] = []
    failures = 0
    with ThreadPoolExecutor(max_workers=args.concurrent) as executor:
        futures = [
            executor.submit(do_acquire, factory, i)
            for i in range(1, args.concurrent + 1)
        ]
        for fut in as_completed(futures):
            idx, conn, err = fut.result()
            if err is not None:
                failures += 1
                event_log.record(f"acquire {idx} failed", err)
                print(f"{idx} ERR {type(err).__name__}: {err}")
            else:
                conns.append(conn)
                event_log.record(f"acquire {idx} ok")
                print(f"{idx} OK")

    close_errors: list[Exception] = []
    for conn in conns:
        try:
            conn.close()
        except Exception as e:
            close_errors.append(e)

    print("---")
    print(f"Done. ok={len(conns)} failed={failures} log_entries={len(event_log)}")
    if close_errors:
        raise SQLErrorList(close_errors)


if __name__ == "__main__":
    main()
