"""Command-line entry point for doorkeep.

Loads environment variables, applies command-line overrides, and runs one
search -> dedupe -> notify invocation (the same code path the scheduled
handler uses). Exits non-zero when any query, store or notify error occurred.
"""
from dotenv import load_dotenv
import argparse
import json
import os
import sys

# Load environment variables first, before any other imports
load_dotenv()

from doorkeep import metrics
from doorkeep.config import reload_config
from doorkeep.errors import ConfigError
from doorkeep.handler import run_once
from doorkeep.utils.logger import configure_logging, log_error, log_info


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Search for new mentions and alert on Slack.")
    parser.add_argument('--query', '-q', dest='queries', action='append',
                        help='Query to run (repeatable). Defaults to SEARCH_QUERIES.')
    parser.add_argument('--dry-run', action='store_true', help='Log alerts instead of posting them to Slack.')
    parser.add_argument('--store', choices=['dynamodb', 'redis', 'file', 'memory'], help='Result store backend.')
    parser.add_argument('--workers', type=int, help='Number of queries processed in parallel.')
    parser.add_argument('--healthcheck', action='store_true', help='Check external services and exit.')
    parser.add_argument('--json', dest='as_json', action='store_true', help='Print the run report as JSON.')
    return parser.parse_args(argv)


def apply_overrides(args) -> None:
    """Apply parsed arguments to environment variables."""
    if args.dry_run:
        os.environ['DRY_RUN'] = 'true'
    if args.store is not None:
        os.environ['STORE_BACKEND'] = args.store
    if args.workers is not None:
        os.environ['MAX_WORKERS'] = str(args.workers)


def main(argv=None) -> int:
    args = parse_args(argv)
    apply_overrides(args)

    config = reload_config()
    configure_logging(config.log_level, config.log_format)
    metrics.configure_metrics(config)
    config.log_configuration()

    if args.healthcheck:
        from doorkeep.healthcheck import run_health_checks
        from doorkeep.store import build_store

        with build_store(config) as store:
            healthy, _ = run_health_checks(config, store)
        return 0 if healthy else 1

    try:
        report = run_once(config, args.queries)
    except ConfigError as e:
        print("Configuration issues found:")
        for issue in e.issues:
            print(f"  - {issue}")
        print("\nPlease fix these issues and try again.")
        return 1

    summary = report.to_dict()
    if args.as_json:
        print(json.dumps(summary, indent=2, ensure_ascii=False))
    else:
        print(f"Fetched {summary['fetched']} result(s): {summary['new']} new, "
              f"{summary['seen']} already seen, {summary['notified']} alert(s) sent.")
        for error in report.errors:
            print(f"  ! {error}")

    if not report.ok:
        log_error("Run failed", error_count=summary['error_count'])
        return 1

    log_info("Run succeeded")
    return 0


if __name__ == "__main__":
    sys.exit(main())
