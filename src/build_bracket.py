#!/usr/bin/env python3
"""
Build a seeded single elimination bracket from a YAML configuration.

Usage:
    python src/build_bracket.py data/knockout.yaml
    python src/build_bracket.py data/knockout.yaml --output data/bracket.yaml

Exit codes:
    0: Success
    2: Invalid configuration or request
"""
import argparse
import logging
import sys

import yaml
from filelock import FileLock

from fixture_engine.config import load_knockout_config
from fixture_engine.elimination import build_knockout_bracket, get_round_name
from fixture_engine.errors import FixtureError
from fixture_engine.metadata import (
    knockout_match_code, knockout_match_metadata, parse_match_source, participant_entry_id,
)
from fixture_engine.models import THIRD_PLACE
from fixture_engine.placeholders import ENGLISH_TEMPLATES, build_bracket_round_map, resolve_participant_name

logger = logging.getLogger(__name__)


def bracket_to_records(matches, total_rounds):
    """Persistable dicts: known entries as ids, everything else in metadata."""
    records = []
    for match in matches:
        records.append({
            'id': match.id,
            'code': knockout_match_code(match.round_number, total_rounds, match.type),
            'stage_id': match.stage_id,
            'bracket_id': match.bracket_id,
            'home_entry_id': participant_entry_id(match.home),
            'away_entry_id': participant_entry_id(match.away),
            'metadata': knockout_match_metadata(match),
        })
    return records


def save_bracket(records, output_path):
    lock = FileLock(f"{output_path}.lock", timeout=10)
    with lock:
        with open(output_path, 'w', encoding='utf-8') as f:
            yaml.dump({'matches': records}, f, default_flow_style=False, sort_keys=False)
    logger.info("Wrote %d bracket matches to %s", len(records), output_path)


def print_bracket(records, bracket_size, out=None):
    """Print the bracket round by round, resolving unknown sides through metadata."""
    out = out or sys.stdout
    bracket_rounds = build_bracket_round_map(
        {'bracketId': r['bracket_id'], 'metadata': r['metadata']} for r in records
    )

    def side_name(entry_id, source):
        # Entry ids double as display names in file-based brackets
        return resolve_participant_name(entry_id, None, source, {entry_id: entry_id} if entry_id else {},
                                        bracket_rounds, ENGLISH_TEMPLATES) or "TBD"

    current_round = None
    for record in records:
        metadata = record['metadata']
        round_number = metadata['roundNumber']
        if metadata['type'] == THIRD_PLACE:
            heading = "Third Place"
        else:
            heading = get_round_name(bracket_size // 2 ** (round_number - 1))
        if heading != current_round:
            if current_round is not None:
                print(file=out)
            print(f"# {heading}", file=out)
            current_round = heading

        home = side_name(record['home_entry_id'], _source(metadata, 'homeSource'))
        away = side_name(record['away_entry_id'], _source(metadata, 'awaySource'))
        print(f"{record['code']:>4}  {home} vs {away}", file=out)


def _source(metadata, key):
    return parse_match_source(metadata.get(key))


def main(argv=None):
    parser = argparse.ArgumentParser(description="Build a single elimination bracket from a YAML file.")
    parser.add_argument('config', help="Path to the knockout YAML configuration")
    parser.add_argument('--output', help="Write the bracket matches to this YAML file")
    parser.add_argument('--verbose', action='store_true', help="Enable debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format='%(levelname)s %(name)s: %(message)s')

    try:
        options = load_knockout_config(args.config)
        result = build_knockout_bracket(**options)
    except FixtureError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    records = bracket_to_records(result['matches'], result['total_rounds'])
    print_bracket(records, result['bracket_size'])

    if args.output:
        save_bracket(records, args.output)

    return 0


if __name__ == '__main__':
    sys.exit(main())
