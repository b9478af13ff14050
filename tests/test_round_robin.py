"""
Unit tests for round-robin fixture generation.
"""
import datetime
from collections import Counter
from itertools import combinations

import pytest

from fixture_engine.errors import ValidationError
from fixture_engine.models import DOUBLE, Group, PlannedMatch, Venue
from fixture_engine.round_robin import (
    BYE_ENTRY_ID,
    assign_group_match_codes,
    assign_round_numbers,
    create_round_robin_rounds,
    generate_round_robin_schedule,
    parse_start_at,
)


def _generate(groups, venues, start_at, duration=60, break_minutes=15):
    return generate_round_robin_schedule("stage-1", groups, venues, start_at, duration, break_minutes)


class TestCreateRoundRobinRounds:
    """Tests for circle-method pairing."""

    @pytest.mark.parametrize("size", [2, 3, 4, 5, 6, 7, 8])
    def test_every_pair_meets_once(self, size):
        """n entries give n(n-1)/2 matches covering each pair exactly once."""
        entries = [f"T{i}" for i in range(size)]
        rounds = create_round_robin_rounds(entries)
        pairs = [frozenset(pair) for round_matches in rounds for pair in round_matches]

        assert len(pairs) == size * (size - 1) // 2
        assert set(pairs) == {frozenset(p) for p in combinations(entries, 2)}

    def test_round_count_even(self):
        """Four entries play three rounds of two matches."""
        rounds = create_round_robin_rounds(["A", "B", "C", "D"])
        assert [len(r) for r in rounds] == [2, 2, 2]

    def test_odd_group_skips_bye(self):
        """Five entries play five rounds; one entry rests each round."""
        rounds = create_round_robin_rounds(["A", "B", "C", "D", "E"])
        assert len(rounds) == 5
        assert all(len(r) == 2 for r in rounds)
        for round_matches in rounds:
            for home, away in round_matches:
                assert BYE_ENTRY_ID not in (home, away)

    def test_no_entry_plays_twice_in_a_round(self):
        rounds = create_round_robin_rounds([f"T{i}" for i in range(6)])
        for round_matches in rounds:
            sides = [side for pair in round_matches for side in pair]
            assert len(sides) == len(set(sides))

    def test_home_side_alternates_by_parity(self):
        """First round: pair 0 is swapped, pair 1 keeps its order."""
        rounds = create_round_robin_rounds(["A", "B", "C", "D"])
        assert rounds[0] == [("D", "A"), ("B", "C")]
        assert rounds[1] == [("A", "C"), ("B", "D")]

    def test_double_mode_mirrors_first_leg(self):
        """Second leg repeats the first with home and away swapped."""
        single = create_round_robin_rounds(["A", "B", "C", "D"])
        double = create_round_robin_rounds(["A", "B", "C", "D"], DOUBLE)

        assert len(double) == 2 * len(single)
        assert double[:len(single)] == single
        for first_leg, second_leg in zip(single, double[len(single):]):
            assert second_leg == [(away, home) for home, away in first_leg]


class TestGenerateSchedule:
    """Tests for full schedule generation."""

    def test_example_four_entries_two_venues(self, four_team_group, two_venues):
        """4 entries on 2 venues: 6 matches in 3 kickoff slots 75 minutes apart."""
        start = "2025-05-01T09:00Z"
        result = _generate([four_team_group], two_venues, start)
        matches = result['matches']

        assert len(matches) == 6
        kickoffs = sorted({m.kickoff_at for m in matches})
        assert len(kickoffs) == 3
        base = datetime.datetime(2025, 5, 1, 9, 0, tzinfo=datetime.timezone.utc)
        assert kickoffs == [base + datetime.timedelta(minutes=75 * i) for i in range(3)]

        for kickoff in kickoffs:
            at_slot = [m for m in matches if m.kickoff_at == kickoff]
            assert sorted(m.venue_id for m in at_slot) == ["Court 1", "Court 2"]

        appearances = Counter()
        for m in matches:
            appearances[m.home_entry_id] += 1
            appearances[m.away_entry_id] += 1
        assert set(appearances.values()) == {3}
        assert result['total_rounds'] == 3

    def test_matches_carry_stage_and_group(self, four_team_group, two_venues, start_at):
        matches = _generate([four_team_group], two_venues, start_at)['matches']
        assert all(isinstance(m, PlannedMatch) for m in matches)
        assert {m.stage_id for m in matches} == {"stage-1"}
        assert {m.group_id for m in matches} == {"A"}

    def test_double_round_robin(self, two_venues, start_at):
        """Double mode doubles the count; second half reverses the first in order."""
        group = Group(id="A", entry_ids=("A", "B", "C", "D", "E"), mode=DOUBLE)
        matches = _generate([group], two_venues, start_at)['matches']

        assert len(matches) == 20
        first_half, second_half = matches[:10], matches[10:]
        assert [(m.away_entry_id, m.home_entry_id) for m in first_half] == \
            [(m.home_entry_id, m.away_entry_id) for m in second_half]

    def test_round_numbers_follow_kickoff(self, two_groups, two_venues, start_at):
        """Rounds never decrease with kickoff and match kickoff instants one to one."""
        matches = _generate(two_groups, two_venues, start_at)['matches']

        for earlier, later in zip(matches, matches[1:]):
            assert later.kickoff_at >= earlier.kickoff_at
            assert later.round_number >= earlier.round_number
            assert (earlier.round_number == later.round_number) == (earlier.kickoff_at == later.kickoff_at)

    def test_groups_share_slots(self, two_groups, start_at):
        """Groups pull from one allocator, so they can share a kickoff and a round."""
        venues = [Venue(id=f"V{i}") for i in range(4)]
        matches = _generate(two_groups, venues, start_at)['matches']

        # Group A fills the first slot and half of the second; group B takes the rest
        assert len(matches) == 9
        round_two = [m for m in matches if m.round_number == 2]
        assert {m.group_id for m in round_two} == {"A", "B"}
        assert len({m.kickoff_at for m in round_two}) == 1

    def test_distinct_venues_within_a_slot(self, start_at):
        venues = [Venue(id=f"V{i}") for i in range(3)]
        group = Group(id="A", entry_ids=tuple(f"T{i}" for i in range(6)))
        matches = _generate([group], venues, start_at)['matches']

        by_kickoff = {}
        for m in matches:
            by_kickoff.setdefault(m.kickoff_at, []).append(m.venue_id)
        for venue_ids in by_kickoff.values():
            assert len(venue_ids) == len(set(venue_ids))

    def test_accepts_plain_inputs(self, start_at):
        """Groups as dicts and venues as strings are accepted."""
        result = _generate(
            [{'id': 'A', 'entry_ids': ['X', 'Y'], 'mode': 'double'}],
            ['Court 1'],
            start_at,
        )
        assert len(result['matches']) == 2
        assert result['matches'][0].venue_id == 'Court 1'

    def test_deterministic(self, two_groups, two_venues, start_at):
        first = _generate(two_groups, two_venues, start_at)
        second = _generate(two_groups, two_venues, start_at)
        assert first == second


class TestValidation:
    """Every invalid request raises before producing matches."""

    def test_no_groups(self, two_venues, start_at):
        with pytest.raises(ValidationError) as exc:
            _generate([], two_venues, start_at)
        assert exc.value.code == 'no-groups'

    def test_no_venues(self, four_team_group, start_at):
        with pytest.raises(ValidationError) as exc:
            _generate([four_team_group], [], start_at)
        assert exc.value.code == 'no-venues'

    @pytest.mark.parametrize("duration", [9, 0, -5, float('nan'), 10 ** 400, "60", True])
    def test_invalid_duration(self, four_team_group, two_venues, start_at, duration):
        with pytest.raises(ValidationError) as exc:
            _generate([four_team_group], two_venues, start_at, duration=duration)
        assert exc.value.code == 'invalid-duration'

    @pytest.mark.parametrize("break_minutes", [-1, 181, float('inf'), 10 ** 400])
    def test_invalid_break(self, four_team_group, two_venues, start_at, break_minutes):
        with pytest.raises(ValidationError) as exc:
            _generate([four_team_group], two_venues, start_at, break_minutes=break_minutes)
        assert exc.value.code == 'invalid-break'

    @pytest.mark.parametrize("break_minutes", [0, 180])
    def test_break_bounds_inclusive(self, four_team_group, two_venues, start_at, break_minutes):
        result = _generate([four_team_group], two_venues, start_at, break_minutes=break_minutes)
        assert len(result['matches']) == 6

    def test_minimum_duration_accepted(self, four_team_group, two_venues, start_at):
        assert len(_generate([four_team_group], two_venues, start_at, duration=10)['matches']) == 6

    @pytest.mark.parametrize("start", ["not a date", "", None, 12345])
    def test_invalid_start(self, four_team_group, two_venues, start):
        with pytest.raises(ValidationError) as exc:
            _generate([four_team_group], two_venues, start)
        assert exc.value.code == 'invalid-start'

    def test_too_few_entries(self, two_venues, start_at):
        with pytest.raises(ValidationError) as exc:
            _generate([Group(id="A", entry_ids=("Solo",))], two_venues, start_at)
        assert exc.value.code == 'insufficient-entries'
        assert "A" in exc.value.detail

    def test_duplicate_entries(self, two_venues, start_at):
        with pytest.raises(ValidationError) as exc:
            _generate([Group(id="A", entry_ids=("X", "Y", "X"))], two_venues, start_at)
        assert exc.value.code == 'duplicate-entry'

    def test_unknown_mode(self, two_venues, start_at):
        with pytest.raises(ValidationError) as exc:
            _generate([Group(id="A", entry_ids=("X", "Y"), mode="triple")], two_venues, start_at)
        assert exc.value.code == 'invalid-mode'

    def test_bad_later_group_blocks_whole_request(self, four_team_group, two_venues, start_at):
        """A valid first group does not leak a partial schedule."""
        with pytest.raises(ValidationError):
            _generate([four_team_group, Group(id="B", entry_ids=("Solo",))], two_venues, start_at)

    def test_group_without_id(self, two_venues, start_at):
        with pytest.raises(ValidationError) as exc:
            _generate([{'entry_ids': ['X', 'Y']}], two_venues, start_at)
        assert exc.value.code == 'invalid-group'

    def test_error_payload(self, two_venues, start_at):
        with pytest.raises(ValidationError) as exc:
            _generate([], two_venues, start_at)
        payload = exc.value.to_dict()
        assert payload['status'] == 400
        assert payload['type'] == 'no-groups'
        assert payload['title']


class TestHelpers:
    """Tests for start parsing, renumbering and match codes."""

    def test_parse_start_naive_is_utc(self):
        parsed = parse_start_at(datetime.datetime(2025, 5, 1, 9, 0))
        assert parsed.tzinfo == datetime.timezone.utc

    def test_parse_start_with_offset(self):
        parsed = parse_start_at("2025-05-01T11:00:00+02:00")
        assert parsed == datetime.datetime(2025, 5, 1, 9, 0, tzinfo=datetime.timezone.utc)

    def test_assign_round_numbers_clusters_equal_kickoffs(self, start_at):
        later = start_at + datetime.timedelta(hours=1)

        def planned(group_id, kickoff):
            return PlannedMatch("s", group_id, 0, "H", "A", kickoff, "V")

        numbered = assign_round_numbers([planned("B", later), planned("A", start_at), planned("C", start_at)])
        assert [m.round_number for m in numbered] == [1, 1, 2]
        assert [m.group_id for m in numbered] == ["A", "C", "B"]

    def test_assign_round_numbers_empty(self):
        assert assign_round_numbers([]) == []

    def test_group_match_codes(self, two_groups, two_venues, start_at):
        matches = _generate(two_groups, two_venues, start_at)['matches']
        codes = assign_group_match_codes(matches, {"A": "GA"})

        assert codes[:6] == [f"GA-{i:02d}" for i in range(1, 7)]
        assert codes[6:] == ["B-01", "B-02", "B-03"]
