#!/usr/bin/env python3
"""
Post the result of an E2E run to Microsoft Teams.

Usage: python send_teams_notification.py [--results test-results/junit.xml]
"""

import argparse
import sys
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

from shared.config import get_config
from shared.junit import parse_junit_file
from shared.logging import configure_logging_from_config
from shared.teams import (
    build_message_card,
    build_missing_results_card,
    parse_results,
    send_teams_card,
    should_notify,
)


def main() -> None:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(description="Send E2E results to a Teams webhook")
    parser.add_argument("--results", default="test-results/junit.xml", help="JUnit XML report")
    args = parser.parse_args()

    config = get_config()
    configure_logging_from_config(config)

    if not config.teams_webhook_url:
        print("TEAMS_WEBHOOK_URL is not set")
        sys.exit(1)

    if not Path(args.results).exists():
        print(f"Results file not found: {args.results}")
        card = build_missing_results_card(args.results, config.run_url)
        if not send_teams_card(config.teams_webhook_url, card):
            sys.exit(1)
        return

    stats = parse_results(parse_junit_file(args.results))

    print("\n" + "=" * 80)
    print("E2E RESULTS")
    print("=" * 80)
    print(f"\nTotal: {stats.total}")
    print(f"Passed: {stats.passed}")
    print(f"Failed: {stats.failed}")
    print(f"Skipped: {stats.skipped}")

    if not should_notify(stats, config.notify_always):
        print("\nNo failures; skipping notification (set NOTIFY_ALWAYS=true to always send)")
        return

    if not send_teams_card(config.teams_webhook_url, build_message_card(stats, config.run_url)):
        sys.exit(1)
    print("\nNotification sent")


if __name__ == "__main__":
    main()
