"""
Single elimination bracket generation.
"""
import logging
import math
from typing import Dict, List, Optional, Union

from fixture_engine.errors import ValidationError
from fixture_engine.models import (
    FINAL, NORMAL, THIRD_PLACE, EntryId, KnockoutMatch, LoserSource, MatchId,
    ParticipantSource, Seed, SeedSource, WinnerSource,
)

logger = logging.getLogger(__name__)

MIN_SEEDS = 2


def get_round_name(teams_in_round: int) -> str:
    """Get the name of a round based on number of teams."""
    if teams_in_round == 2:
        return "Final"
    elif teams_in_round == 4:
        return "Semifinal"
    elif teams_in_round == 8:
        return "Quarterfinal"
    else:
        return f"Round of {teams_in_round}"


def calculate_bracket_size(num_teams: int) -> int:
    """Calculate the bracket size (next power of 2)."""
    if num_teams <= 0:
        return 0
    return 2 ** math.ceil(math.log2(num_teams))


def calculate_byes(num_teams: int) -> int:
    """Calculate number of byes needed."""
    return calculate_bracket_size(num_teams) - num_teams


def _generate_bracket_order(bracket_size: int) -> List[int]:
    """
    Generate the standard tournament bracket order.
    This ensures that if all higher seeds win, they meet in the proper rounds.

    For 8 teams: [1, 8, 4, 5, 2, 7, 3, 6]
    This gives matchups: 1v8, 4v5, 2v7, 3v6
    Winners: 1v4 side, 2v3 side
    Final: 1v2 (if chalk)
    """
    if bracket_size <= 2:
        return [1, 2][:bracket_size]

    half_size = bracket_size // 2
    upper_half = _generate_bracket_order(half_size)

    # Pair each upper seed with its complement
    result = []
    for seed in upper_half:
        result.extend([seed, bracket_size + 1 - seed])

    return result


def create_match_id(bracket_id: str, round_number: int, index: int) -> MatchId:
    return MatchId(f"{bracket_id}-r{round_number}-m{index}")


def _to_seed(value) -> Seed:
    if isinstance(value, Seed):
        return value
    if isinstance(value, dict):
        entry_id = value.get('entry_id', value.get('entryId'))
        return Seed(seed=value.get('seed'), entry_id=EntryId(str(entry_id)) if entry_id is not None else None)
    if isinstance(value, (tuple, list)) and len(value) == 2:
        seed, entry_id = value
        return Seed(seed=seed, entry_id=EntryId(str(entry_id)) if entry_id is not None else None)
    raise ValidationError('invalid-seed', "Invalid seed", f"Cannot interpret {value!r} as a seed.")


def normalize_seeds(seeds: List[Union[Seed, Dict, tuple]]) -> Dict[int, SeedSource]:
    """
    Validate the seed list and map seed numbers to seed sources.

    Seed numbers must be positive integers running 1..N without gaps; entry ids,
    where given, must be unique.
    """
    seeds = [_to_seed(s) for s in seeds or []]

    if len(seeds) < MIN_SEEDS:
        raise ValidationError(
            'insufficient-seeds', "Not enough seeds",
            f"Provide at least {MIN_SEEDS} seeds to build a knockout bracket.")

    seed_map = {}
    seen_entries = set()
    for seed in seeds:
        if isinstance(seed.seed, bool) or not isinstance(seed.seed, int) or seed.seed < 1:
            raise ValidationError(
                'invalid-seed', "Invalid seed number",
                f"Seed numbers must be positive integers, got {seed.seed!r}.")

        if seed.seed in seed_map:
            raise ValidationError(
                'duplicate-seed', "Duplicate seed number",
                f"Seed {seed.seed} is defined more than once.")

        if seed.entry_id is not None:
            if seed.entry_id in seen_entries:
                raise ValidationError(
                    'duplicate-entry-id', "Duplicate entry",
                    f"Entry {seed.entry_id} holds more than one seed.")
            seen_entries.add(seed.entry_id)

        seed_map[seed.seed] = SeedSource(seed=seed.seed, entry_id=seed.entry_id)

    missing = [n for n in range(1, len(seed_map) + 1) if n not in seed_map]
    if missing:
        raise ValidationError(
            'non-contiguous-seeds', "Seed numbers have gaps",
            f"Seeds must run from 1 to {len(seed_map)}; missing {', '.join(str(n) for n in missing)}.")

    return seed_map


def build_knockout_bracket(stage_id: str, bracket_id: str, seeds: List,
                           third_place_match: bool = False) -> Dict:
    """
    Build every match of a seeded single elimination bracket.

    Seed numbers above the number of real seeds are byes. A bye produces no
    match; the seed it protects goes straight into the next round as a
    SeedSource. Every other match feeds the next round through a WinnerSource.

    Returns dict with:
    - matches: list of KnockoutMatch, round by round, third place last
    - bracket_size: total bracket size
    - total_rounds: number of rounds
    - byes: number of byes in the first round
    """
    seed_map = normalize_seeds(seeds)
    bracket_size = calculate_bracket_size(len(seed_map))
    total_rounds = int(math.log2(bracket_size))
    bracket_order = _generate_bracket_order(bracket_size)

    def match_type(round_number):
        return FINAL if round_number == total_rounds else NORMAL

    rounds: List[List[KnockoutMatch]] = []

    # Each slot holds the source that advances out of that bracket position
    slots: List[ParticipantSource] = []
    first_round = []
    for i in range(0, len(bracket_order), 2):
        home = seed_map.get(bracket_order[i])
        away = seed_map.get(bracket_order[i + 1])

        if away is None:
            slots.append(home)
            continue
        if home is None:
            slots.append(away)
            continue

        match = KnockoutMatch(
            id=create_match_id(bracket_id, 1, len(first_round) + 1),
            stage_id=stage_id,
            bracket_id=bracket_id,
            round_number=1,
            type=match_type(1),
            home=home,
            away=away,
        )
        first_round.append(match)
        slots.append(WinnerSource(match_id=match.id))

    rounds.append(first_round)
    byes = calculate_byes(len(seed_map))
    logger.debug("Bracket %s round 1: %d matches, %d byes", bracket_id, len(first_round), byes)

    round_number = 2
    while len(slots) > 1:
        current_round = []
        next_slots = []
        for i in range(0, len(slots), 2):
            match = KnockoutMatch(
                id=create_match_id(bracket_id, round_number, len(current_round) + 1),
                stage_id=stage_id,
                bracket_id=bracket_id,
                round_number=round_number,
                type=match_type(round_number),
                home=slots[i],
                away=slots[i + 1],
            )
            current_round.append(match)
            next_slots.append(WinnerSource(match_id=match.id))

        logger.debug("Bracket %s round %d: %d matches", bracket_id, round_number, len(current_round))
        rounds.append(current_round)
        slots = next_slots
        round_number += 1

    matches = [match for round_matches in rounds for match in round_matches]

    if third_place_match:
        third_place = _create_third_place_match(stage_id, bracket_id, rounds)
        if third_place is not None:
            matches.append(third_place)
        else:
            logger.debug("Bracket %s: no third place match, semifinal round lacks two playable matches", bracket_id)

    logger.info("Built bracket %s for stage %s: %d seeds, %d matches over %d rounds",
                bracket_id, stage_id, len(seed_map), len(matches), total_rounds)

    return {
        'matches': matches,
        'bracket_size': bracket_size,
        'total_rounds': total_rounds,
        'byes': byes,
    }


def _create_third_place_match(stage_id: str, bracket_id: str,
                              rounds: List[List[KnockoutMatch]]) -> Optional[KnockoutMatch]:
    """The losers of the two semifinals meet in the final's round."""
    if len(rounds) < 2:
        return None

    semifinals = rounds[-2]
    if len(semifinals) != 2:
        return None

    first_semifinal, second_semifinal = semifinals
    return KnockoutMatch(
        id=MatchId(f"{bracket_id}-third-place"),
        stage_id=stage_id,
        bracket_id=bracket_id,
        round_number=rounds[-1][0].round_number,
        type=THIRD_PLACE,
        home=LoserSource(match_id=first_semifinal.id),
        away=LoserSource(match_id=second_semifinal.id),
    )
