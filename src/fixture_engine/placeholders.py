"""
Display names for participants that are not known yet ("Winner of SF2").
"""
import logging
from typing import Any, Dict, Iterable, Mapping, Optional

from fixture_engine.metadata import (
    format_knockout_code, parse_bracket_match_id, parse_match_metadata, parse_round_number,
)
from fixture_engine.models import ParticipantSource, SeedSource, WinnerSource

logger = logging.getLogger(__name__)

NORWEGIAN_TEMPLATES = {
    'seed': "Seed {seed}",
    'winner': "Vinner av {code}",
    'loser': "Taper av {code}",
}

ENGLISH_TEMPLATES = {
    'seed': "Seed {seed}",
    'winner': "Winner of {code}",
    'loser': "Loser of {code}",
}

DEFAULT_TEMPLATES = NORWEGIAN_TEMPLATES


def _row_round_number(row: Mapping[str, Any]) -> Optional[int]:
    if 'metadata' in row:
        return parse_match_metadata(row.get('metadata')).round_number
    return parse_round_number(row.get('roundNumber', row.get('round_number')))


def build_bracket_round_map(rows: Iterable[Mapping[str, Any]]) -> Dict[str, int]:
    """
    Map each bracket id to the highest round number seen among its matches.

    Rows carry ``bracketId`` and either raw ``metadata`` or a ``roundNumber``.
    Rows without a bracket or without a usable round are skipped.
    """
    rounds = {}
    skipped = 0
    for row in rows:
        bracket_id = row.get('bracketId', row.get('bracket_id'))
        if not bracket_id:
            continue
        round_number = _row_round_number(row)
        if round_number is None:
            skipped += 1
            continue
        if round_number > rounds.get(bracket_id, 0):
            rounds[bracket_id] = round_number

    if skipped:
        logger.warning("Skipped %d bracket rows without a valid round number", skipped)
    return rounds


def derive_placeholder_name(source: Optional[ParticipantSource], bracket_rounds: Mapping[str, int],
                            templates: Optional[Mapping[str, str]] = None) -> Optional[str]:
    """Name a not-yet-known participant from where it will come from."""
    if source is None:
        return None

    templates = templates or DEFAULT_TEMPLATES

    if isinstance(source, SeedSource):
        return templates['seed'].format(seed=source.seed)

    match_ref = parse_bracket_match_id(source.match_id)
    if match_ref is None:
        return None

    bracket_id, round_number, _ = match_ref
    code = format_knockout_code(round_number, bracket_rounds.get(bracket_id))

    if isinstance(source, WinnerSource):
        return templates['winner'].format(code=code)
    return templates['loser'].format(code=code)


def resolve_participant_name(entry_id: Optional[str], label: Optional[str],
                             source: Optional[ParticipantSource],
                             entry_names: Mapping[str, str],
                             bracket_rounds: Mapping[str, int],
                             templates: Optional[Mapping[str, str]] = None) -> Optional[str]:
    """
    Pick the name to show for one side of a match: the entry's name once it is
    known, otherwise a stored label, otherwise a placeholder from its source.
    """
    if entry_id:
        return entry_names.get(entry_id)
    if label:
        return label
    return derive_placeholder_name(source, bracket_rounds, templates)
