"""
Loading generation requests from YAML files.

Round-robin file:

    stage_id: group-stage
    start_at: 2025-05-01T09:00:00Z
    match_duration_minutes: 60
    break_minutes: 15
    venues: [Court 1, Court 2]
    groups:
      A: {mode: double, code: A, entries: [Team 1, Team 2, Team 3]}
      B: [Team 4, Team 5]

Knockout file:

    stage_id: playoffs
    bracket_id: gold
    third_place_match: true
    seeds: [Team 1, Team 2, Team 3]
"""
import os
from typing import Dict

import yaml

from fixture_engine.errors import ConfigError
from fixture_engine.models import SINGLE, EntryId, Group, Seed, Venue, VenueId

DEFAULT_MATCH_DURATION_MINUTES = 60
DEFAULT_BREAK_MINUTES = 15


def _load_yaml(file_path: str) -> Dict:
    if not os.path.exists(file_path):
        raise ConfigError(f"Configuration file not found: {file_path}")
    with open(file_path, mode='r', encoding='utf-8') as file:
        try:
            data = yaml.safe_load(file)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {file_path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"{file_path} must contain a mapping at the top level")
    return data


def load_groups(groups_data) -> list:
    """Groups keyed by id; each value is a list of entries or a mapping."""
    if not isinstance(groups_data, dict):
        raise ConfigError("'groups' must map group ids to their entries")

    groups = []
    for group_id, group_data in groups_data.items():
        if isinstance(group_data, list):
            group_data = {'entries': group_data}
        if not isinstance(group_data, dict):
            raise ConfigError(f"Group {group_id} must be a list of entries or a mapping")
        groups.append(Group(
            id=str(group_id),
            entry_ids=tuple(EntryId(str(entry)) for entry in group_data.get('entries') or []),
            mode=group_data.get('mode', SINGLE),
            code=group_data.get('code'),
        ))
    return groups


def load_round_robin_config(file_path: str) -> Dict:
    """Keyword arguments for generate_round_robin_schedule."""
    data = _load_yaml(file_path)

    start_at = data.get('start_at')
    if start_at is None:
        raise ConfigError(f"{file_path}: 'start_at' is required")

    return {
        'stage_id': str(data.get('stage_id', 'stage')),
        'groups': load_groups(data.get('groups') or {}),
        'venues': [Venue(id=VenueId(str(v))) for v in data.get('venues') or []],
        'start_at': start_at,
        'match_duration_minutes': data.get('match_duration_minutes', DEFAULT_MATCH_DURATION_MINUTES),
        'break_minutes': data.get('break_minutes', DEFAULT_BREAK_MINUTES),
    }


def load_seeds(seeds_data) -> list:
    """
    Either a plain list (list order is seed order) or a list of mappings with
    explicit ``seed`` and optional ``entry_id``.
    """
    if not isinstance(seeds_data, list):
        raise ConfigError("'seeds' must be a list")

    seeds = []
    for position, item in enumerate(seeds_data, start=1):
        if isinstance(item, dict):
            entry_id = item.get('entry_id')
            seeds.append(Seed(seed=item.get('seed', position),
                              entry_id=EntryId(str(entry_id)) if entry_id is not None else None))
        else:
            seeds.append(Seed(seed=position, entry_id=EntryId(str(item)) if item is not None else None))
    return seeds


def load_knockout_config(file_path: str) -> Dict:
    """Keyword arguments for build_knockout_bracket."""
    data = _load_yaml(file_path)

    return {
        'stage_id': str(data.get('stage_id', 'stage')),
        'bracket_id': str(data.get('bracket_id', 'bracket')),
        'seeds': load_seeds(data.get('seeds') or []),
        'third_place_match': bool(data.get('third_place_match', False)),
    }
