"""
Round-robin fixture generation for one or more groups.

Pairings come from the circle method; kickoff times and venues come from a single
SlotAllocator shared by every group in the request, so groups that share venues
compete for the same slots.
"""
import dataclasses
import datetime
import logging
import math
from typing import Dict, List, Optional, Tuple, Union

from fixture_engine.errors import ValidationError
from fixture_engine.models import (
    DOUBLE, ROUND_ROBIN_MODES, SINGLE, EntryId, Group, PlannedMatch, Venue, VenueId,
)
from fixture_engine.slots import SlotAllocator

logger = logging.getLogger(__name__)

MIN_ENTRIES_PER_GROUP = 2
MIN_DURATION_MINUTES = 10
MAX_BREAK_MINUTES = 180

BYE_ENTRY_ID = '__bye__'


def parse_start_at(value) -> datetime.datetime:
    """
    Turn a datetime or ISO-8601 string into an aware datetime.
    Naive values are taken to be UTC.
    """
    if isinstance(value, datetime.datetime):
        start_at = value
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        try:
            start_at = datetime.datetime.fromisoformat(text)
        except ValueError:
            raise ValidationError(
                'invalid-start', "Invalid start time",
                f"'{value}' is not a valid ISO-8601 timestamp.") from None
    else:
        raise ValidationError(
            'invalid-start', "Invalid start time",
            "Provide a valid start timestamp to seed the schedule.")

    if start_at.tzinfo is None:
        start_at = start_at.replace(tzinfo=datetime.timezone.utc)
    return start_at


def _is_number(value) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        return False


def _to_group(group) -> Group:
    if isinstance(group, Group):
        return group
    if isinstance(group, dict):
        if group.get('id') is None:
            raise ValidationError('invalid-group', "Invalid group", f"Group {group!r} has no id.")
        entries = group.get('entry_ids', group.get('entries', []))
        return Group(
            id=str(group['id']),
            entry_ids=tuple(EntryId(str(e)) for e in entries),
            mode=group.get('mode') or SINGLE,
            code=group.get('code'),
        )
    raise ValidationError('invalid-group', "Invalid group", f"Cannot interpret {group!r} as a group.")


def _to_venue(venue) -> Venue:
    if isinstance(venue, Venue):
        return venue
    if isinstance(venue, dict):
        return Venue(id=VenueId(str(venue['id'])))
    return Venue(id=VenueId(str(venue)))


def validate_options(groups: List[Group], venues: List[Venue], start_at,
                     match_duration_minutes, break_minutes) -> datetime.datetime:
    """Check a generation request up front. Returns the parsed start time."""
    if not groups:
        raise ValidationError(
            'no-groups', "At least one group is required",
            "Select one or more groups before generating fixtures.")

    if not venues:
        raise ValidationError(
            'no-venues', "No venues available",
            "Provide at least one venue to allocate matches.")

    if not _is_number(match_duration_minutes) or match_duration_minutes < MIN_DURATION_MINUTES:
        raise ValidationError(
            'invalid-duration', "Match duration too short",
            f"Matches must last at least {MIN_DURATION_MINUTES} minutes.")

    if not _is_number(break_minutes) or break_minutes < 0 or break_minutes > MAX_BREAK_MINUTES:
        raise ValidationError(
            'invalid-break', "Break length is invalid",
            f"Breaks must be between 0 and {MAX_BREAK_MINUTES} minutes.")

    parsed_start = parse_start_at(start_at)

    for group in groups:
        if group.mode not in ROUND_ROBIN_MODES:
            raise ValidationError(
                'invalid-mode', "Unknown round-robin mode",
                f"Group {group.id} uses mode '{group.mode}'; expected one of {', '.join(ROUND_ROBIN_MODES)}.")

        if len(group.entry_ids) < MIN_ENTRIES_PER_GROUP:
            raise ValidationError(
                'insufficient-entries', "Not enough entries",
                f"Group {group.id} requires at least {MIN_ENTRIES_PER_GROUP} entries.")

        if len(set(group.entry_ids)) != len(group.entry_ids):
            raise ValidationError(
                'duplicate-entry', "Duplicate entries detected",
                f"Each entry can only be scheduled once in group {group.id}.")

    return parsed_start


def create_round_robin_rounds(entry_ids: List[EntryId], mode: str = SINGLE) -> List[List[Tuple[EntryId, EntryId]]]:
    """
    Build the pairing rounds for one group with the circle method.

    Returns a list of rounds, each a list of (home, away) tuples. An odd group
    gets a bye placeholder; pairs against it are dropped. In double mode the
    mirrored second leg follows the whole first leg.
    """
    teams = list(entry_ids)
    if len(teams) % 2 != 0:
        teams.append(BYE_ENTRY_ID)

    n = len(teams)
    total_rounds = n - 1
    matches_per_round = n // 2
    rounds = []

    rotating = teams[1:]
    for round_index in range(total_rounds):
        round_teams = [teams[0]] + rotating
        round_matches = []

        for match_index in range(matches_per_round):
            home = round_teams[match_index]
            away = round_teams[n - 1 - match_index]

            if home == BYE_ENTRY_ID or away == BYE_ENTRY_ID:
                continue

            # Alternate the home side so home/away counts even out over the cycle
            if round_index % 2 == match_index % 2:
                round_matches.append((away, home))
            else:
                round_matches.append((home, away))

        rounds.append(round_matches)
        rotating.insert(0, rotating.pop())

    if mode == DOUBLE:
        mirrored = [[(away, home) for home, away in round_matches] for round_matches in rounds]
        return rounds + mirrored

    return rounds


def assign_round_numbers(matches: List[PlannedMatch]) -> List[PlannedMatch]:
    """
    Sort matches by kickoff and number rounds by distinct kickoff instant.
    Matches starting at the same instant share a round, whatever their group.
    """
    if not matches:
        return []

    sorted_matches = sorted(matches, key=lambda m: m.kickoff_at)

    current_round = 1
    current_kickoff = sorted_matches[0].kickoff_at
    numbered = []
    for match in sorted_matches:
        if match.kickoff_at > current_kickoff:
            current_round += 1
            current_kickoff = match.kickoff_at
        numbered.append(dataclasses.replace(match, round_number=current_round))

    return numbered


def generate_round_robin_schedule(stage_id: str, groups: List[Union[Group, Dict]], venues: List,
                                  start_at, match_duration_minutes=60, break_minutes=15) -> Dict:
    """
    Generate a full round-robin schedule for every group in the request.

    Returns a dict with:
    - matches: list of PlannedMatch sorted by kickoff
    - total_rounds: number of distinct kickoff slots used

    Raises ValidationError before producing anything if the request is invalid.
    """
    groups = [_to_group(g) for g in groups or []]
    venues = [_to_venue(v) for v in venues or []]
    parsed_start = validate_options(groups, venues, start_at, match_duration_minutes, break_minutes)

    allocator = SlotAllocator(parsed_start, match_duration_minutes, break_minutes, venues)
    matches = []

    for group in groups:
        rounds = create_round_robin_rounds(group.entry_ids, group.mode)
        logger.debug("Group %s: %d entries, %d pairing rounds (%s)",
                     group.id, len(group.entry_ids), len(rounds), group.mode)

        for round_matches in rounds:
            for home, away in round_matches:
                slot = allocator.next()
                matches.append(PlannedMatch(
                    stage_id=stage_id,
                    group_id=group.id,
                    round_number=0,
                    home_entry_id=home,
                    away_entry_id=away,
                    kickoff_at=slot.kickoff_at,
                    venue_id=slot.venue_id,
                ))

    numbered = assign_round_numbers(matches)
    total_rounds = numbered[-1].round_number if numbered else 0

    logger.info("Generated %d round-robin matches for stage %s across %d groups in %d rounds",
                len(numbered), stage_id, len(groups), total_rounds)

    return {
        'matches': numbered,
        'total_rounds': total_rounds,
    }


def assign_group_match_codes(matches: List[PlannedMatch], group_codes: Optional[Dict[str, str]] = None) -> List[str]:
    """
    Number matches within each group in list order, e.g. "A-01", "A-02".
    Returns the codes aligned with ``matches``. Groups without a code in
    ``group_codes`` use their id.
    """
    group_codes = group_codes or {}
    counters = {}
    codes = []
    for match in matches:
        next_index = counters.get(match.group_id, 0) + 1
        counters[match.group_id] = next_index
        prefix = group_codes.get(match.group_id) or match.group_id
        codes.append(f"{prefix}-{next_index:02d}")
    return codes
