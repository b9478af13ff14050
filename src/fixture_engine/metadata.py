"""
Encoding and decoding of the metadata blob persisted with each generated match.

Knockout matches store where each side comes from (``homeSource`` /
``awaySource``) and their ``roundNumber``; round-robin matches store only the
round number. Decoding is lenient: anything malformed becomes ``None`` instead
of raising, so one bad row never breaks a listing.
"""
import math
import re
from typing import Any, Dict, Optional, Tuple

from fixture_engine.models import (
    THIRD_PLACE, EntryId, KnockoutMatch, LoserSource, MatchId, MatchMetadata,
    ParticipantSource, PlannedMatch, SeedSource, WinnerSource,
)

ROUND_ROBIN_GENERATOR = 'round_robin_circle'
KNOCKOUT_GENERATOR = 'knockout_seeded'

MATCH_ID_PATTERN = re.compile(r"(.*)-r([0-9]+)-m([0-9]+)")


def source_to_metadata(source: Optional[ParticipantSource]) -> Optional[Dict[str, Any]]:
    if source is None:
        return None
    if isinstance(source, SeedSource):
        return {'type': 'seed', 'seed': source.seed, 'entryId': source.entry_id}
    return {'type': source.type, 'matchId': source.match_id}


def knockout_match_metadata(match: KnockoutMatch) -> Dict[str, Any]:
    return {
        'generator': KNOCKOUT_GENERATOR,
        'type': match.type,
        'roundNumber': match.round_number,
        'homeSource': source_to_metadata(match.home),
        'awaySource': source_to_metadata(match.away),
    }


def round_robin_match_metadata(match: PlannedMatch) -> Dict[str, Any]:
    return {
        'generator': ROUND_ROBIN_GENERATOR,
        'roundNumber': match.round_number,
    }


def participant_entry_id(source: Optional[ParticipantSource]) -> Optional[EntryId]:
    """The entry behind a source, when it is already known."""
    if isinstance(source, SeedSource):
        return source.entry_id
    return None


def _is_finite(value) -> bool:
    # Ints too large for a float overflow instead of reporting inf
    try:
        return math.isfinite(value)
    except OverflowError:
        return False


def _finite_number(value) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = value
    elif isinstance(value, str):
        try:
            number = float(value)
        except ValueError:
            return None
    else:
        return None
    return number if _is_finite(number) else None


def parse_match_source(raw: Any) -> Optional[ParticipantSource]:
    """
    Decode one stored participant source.

    A seed source needs a finite seed >= 1; winner/loser sources need a
    non-empty string matchId. Anything else yields None.
    """
    if not isinstance(raw, dict):
        return None

    source_type = raw.get('type')

    if source_type == 'seed':
        seed = _finite_number(raw.get('seed'))
        if seed is None or seed < 1:
            return None
        entry_id = raw.get('entryId')
        return SeedSource(seed=int(seed), entry_id=EntryId(entry_id) if isinstance(entry_id, str) else None)

    if source_type in ('winner', 'loser'):
        match_id = raw.get('matchId')
        if not isinstance(match_id, str) or not match_id:
            return None
        if source_type == 'winner':
            return WinnerSource(match_id=MatchId(match_id))
        return LoserSource(match_id=MatchId(match_id))

    return None


def parse_round_number(value: Any) -> Optional[int]:
    """A finite number truncated toward zero; must end up positive."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not _is_finite(value):
        return None
    rounded = int(value)
    return rounded if rounded > 0 else None


def _parse_label(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value
    return None


def parse_match_metadata(raw: Any) -> MatchMetadata:
    if not isinstance(raw, dict):
        return MatchMetadata()

    return MatchMetadata(
        home_source=parse_match_source(raw.get('homeSource')),
        away_source=parse_match_source(raw.get('awaySource')),
        round_number=parse_round_number(raw.get('roundNumber')),
        home_label=_parse_label(raw.get('homeLabel')),
        away_label=_parse_label(raw.get('awayLabel')),
    )


def parse_bracket_match_id(value: Any) -> Optional[Tuple[str, int, int]]:
    """Split "{bracketId}-r{round}-m{index}" into its parts, or None."""
    if not isinstance(value, str):
        return None
    found = MATCH_ID_PATTERN.fullmatch(value)
    if not found:
        return None
    bracket_id, round_number, match_index = found.groups()
    if not bracket_id:
        return None
    return bracket_id, int(round_number), int(match_index)


def format_knockout_code(round_number: int, max_round: Optional[int] = None) -> str:
    """F for the last round, SF{n} for the one before it, R{n} otherwise."""
    if max_round is not None and round_number == max_round:
        return "F"
    if max_round is not None and round_number == max_round - 1:
        return f"SF{round_number}"
    return f"R{round_number}"


def knockout_match_code(round_number: int, total_rounds: int, match_type: str) -> str:
    """Short code stored with a knockout match; the third place match is "3P"."""
    if match_type == THIRD_PLACE:
        return "3P"
    return format_knockout_code(round_number, total_rounds)
