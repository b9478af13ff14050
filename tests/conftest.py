"""
Shared pytest fixtures for fixture engine tests.

Running tests:
    pytest tests/
"""
import datetime
import os
import sys

import pytest

# Add src directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from fixture_engine.models import Group, Venue


@pytest.fixture
def start_at():
    """Kickoff of the first slot."""
    return datetime.datetime(2025, 5, 1, 9, 0, tzinfo=datetime.timezone.utc)


@pytest.fixture
def two_venues():
    return [Venue(id="Court 1"), Venue(id="Court 2")]


@pytest.fixture
def four_team_group():
    """A single group of four entries."""
    return Group(id="A", entry_ids=("Team 1", "Team 2", "Team 3", "Team 4"))


@pytest.fixture
def two_groups():
    """Two groups of different sizes sharing the same venues."""
    return [
        Group(id="A", entry_ids=("A1", "A2", "A3", "A4")),
        Group(id="B", entry_ids=("B1", "B2", "B3")),
    ]


@pytest.fixture
def round_robin_yaml(tmp_path):
    """A round-robin configuration file."""
    path = tmp_path / "round_robin.yaml"
    path.write_text(
        "stage_id: group-stage\n"
        "start_at: '2025-05-01T09:00:00Z'\n"
        "match_duration_minutes: 60\n"
        "break_minutes: 15\n"
        "venues: [Court 1, Court 2]\n"
        "groups:\n"
        "  A: {mode: single, code: GA, entries: [Team 1, Team 2, Team 3, Team 4]}\n"
        "  B: [Team 5, Team 6]\n",
        encoding='utf-8',
    )
    return str(path)


@pytest.fixture
def knockout_yaml(tmp_path):
    """A knockout configuration file with six seeds and a third place match."""
    path = tmp_path / "knockout.yaml"
    path.write_text(
        "stage_id: playoffs\n"
        "bracket_id: gold\n"
        "third_place_match: true\n"
        "seeds: [Team 1, Team 2, Team 3, Team 4, Team 5, Team 6]\n",
        encoding='utf-8',
    )
    return str(path)
