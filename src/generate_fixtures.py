#!/usr/bin/env python3
"""
Generate a round-robin fixture list from a YAML configuration.

Usage:
    python src/generate_fixtures.py data/round_robin.yaml
    python src/generate_fixtures.py data/round_robin.yaml --output data/schedule.yaml

Exit codes:
    0: Success
    2: Invalid configuration or request
"""
import argparse
import logging
import sys
from collections import defaultdict

import yaml
from filelock import FileLock

from fixture_engine.config import load_round_robin_config
from fixture_engine.errors import FixtureError
from fixture_engine.metadata import round_robin_match_metadata
from fixture_engine.round_robin import assign_group_match_codes, generate_round_robin_schedule

logger = logging.getLogger(__name__)


def schedule_to_records(matches, group_codes=None):
    """Plain dicts ready for YAML, one per match."""
    codes = assign_group_match_codes(matches, group_codes)
    records = []
    for code, match in zip(codes, matches):
        records.append({
            'code': code,
            'stage_id': match.stage_id,
            'group_id': match.group_id,
            'round_number': match.round_number,
            'home_entry_id': match.home_entry_id,
            'away_entry_id': match.away_entry_id,
            'kickoff_at': match.kickoff_at.isoformat(),
            'venue_id': match.venue_id,
            'metadata': round_robin_match_metadata(match),
        })
    return records


def save_matches(records, output_path):
    """Write generated matches to YAML, holding a lock next to the file."""
    lock = FileLock(f"{output_path}.lock", timeout=10)
    with lock:
        with open(output_path, 'w', encoding='utf-8') as f:
            yaml.dump({'matches': records}, f, default_flow_style=False, sort_keys=False)
    logger.info("Wrote %d matches to %s", len(records), output_path)


def print_schedule(matches, out=None):
    out = out or sys.stdout
    rounds = defaultdict(list)
    for match in matches:
        rounds[match.round_number].append(match)

    first_round = True
    for round_number in sorted(rounds):
        if not first_round:
            print(file=out)
        print(f"# Round {round_number}", file=out)
        for match in rounds[round_number]:
            print(f"{match.kickoff_at.strftime('%Y-%m-%d %H:%M')}  {match.venue_id}: "
                  f"{match.home_entry_id} vs {match.away_entry_id} ({match.group_id})", file=out)
        first_round = False


def main(argv=None):
    parser = argparse.ArgumentParser(description="Generate round-robin fixtures from a YAML file.")
    parser.add_argument('config', help="Path to the round-robin YAML configuration")
    parser.add_argument('--output', help="Write the generated matches to this YAML file")
    parser.add_argument('--verbose', action='store_true', help="Enable debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format='%(levelname)s %(name)s: %(message)s')

    try:
        options = load_round_robin_config(args.config)
        result = generate_round_robin_schedule(**options)
    except FixtureError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    matches = result['matches']
    print_schedule(matches)

    if args.output:
        group_codes = {group.id: group.code for group in options['groups'] if group.code}
        save_matches(schedule_to_records(matches, group_codes), args.output)

    return 0


if __name__ == '__main__':
    sys.exit(main())
