"""
CloudStack Domain Collector
===========================
Polls the CloudStack management API and writes one `cs_domain` measurement
per domain to stdout as InfluxDB line protocol.

    cloudstack-collector --once       # single cycle, exit status reflects listDomains
    cloudstack-collector              # poll every CLOUDSTACK_POLL_INTERVAL seconds

Logs go to stderr so stdout can be consumed by a metrics agent.
"""

import argparse
import logging
import signal
import sys
import time
from typing import Any, Dict, List, Optional

from cloudstack_collector.accumulator import Accumulator
from cloudstack_collector.collector import gather
from cloudstack_collector.config_validator import ConfigValidator
from cloudstack_collector.cs_common import CFG, CloudStackClient
from cloudstack_collector.exceptions import CollectorError
from cloudstack_collector.structured_logging import setup_logging

log = logging.getLogger("cloudstack_collector.worker")

# ---------------------------------------------------------------------------
# Graceful shutdown
# ---------------------------------------------------------------------------
_shutdown = False


def _handle_signal(signum, _frame):
    global _shutdown
    log.info("Received signal %s - shutting down gracefully", signum)
    _shutdown = True


# ---------------------------------------------------------------------------
# Collection
# ---------------------------------------------------------------------------
def run_collection_cycle(client: CloudStackClient, cfg: Dict[str, Any], out=None) -> bool:
    """Execute one collection cycle. Returns False when listDomains failed."""
    out = out or sys.stdout
    acc = Accumulator()
    started = time.monotonic()
    try:
        gather(client, acc, list_all=cfg["ALL_DOMAINS"], domain_ids=cfg["DOMAIN_IDS"])
    except CollectorError as exc:
        log.error("Collection cycle failed: %s", exc)
        return False

    lines = acc.to_line_protocol()
    if lines:
        out.write(lines + "\n")
        out.flush()
    log.info("Cycle complete: %d records, %d errors in %.2fs",
             len(acc.records), len(acc.errors), time.monotonic() - started)
    return True


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Collect CloudStack domain quota/usage metrics")
    parser.add_argument("--once", action="store_true", help="Run a single collection cycle and exit")
    parser.add_argument("--interval", type=int, default=None,
                        help="Seconds between cycles (default: CLOUDSTACK_POLL_INTERVAL)")
    parser.add_argument("--log-file", default=None, help="Also write JSON logs to this file")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None, cfg: Optional[Dict[str, Any]] = None) -> int:
    args = parse_args(argv)
    cfg = cfg or CFG
    setup_logging(cfg["LOG_LEVEL"], json_logs=cfg["JSON_LOGS"], log_file=args.log_file)

    is_valid, errors, warnings = ConfigValidator.validate(cfg)
    if not ConfigValidator.log_validation_results(is_valid, errors, warnings):
        return 2

    client = CloudStackClient.from_config(cfg)

    if args.once:
        return 0 if run_collection_cycle(client, cfg) else 1

    signal.signal(signal.SIGINT, _handle_signal)
    signal.signal(signal.SIGTERM, _handle_signal)

    interval = args.interval or int(cfg["POLL_INTERVAL"])
    log.info("CloudStack collector starting (poll every %ds) against %s", interval, cfg["API_URL"])

    last_run = 0.0
    while not _shutdown:
        now = time.time()
        if now - last_run >= interval:
            run_collection_cycle(client, cfg)
            last_run = time.time()
        time.sleep(min(1, interval))  # wake up every second to check shutdown
    return 0


if __name__ == "__main__":
    sys.exit(main())
