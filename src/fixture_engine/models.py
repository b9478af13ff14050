"""
Value types shared by the round-robin scheduler, the knockout bracket builder
and the placeholder resolver.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import NewType, Optional, Tuple, Union

EntryId = NewType('EntryId', str)
VenueId = NewType('VenueId', str)
MatchId = NewType('MatchId', str)

SINGLE = 'single'
DOUBLE = 'double'
ROUND_ROBIN_MODES = (SINGLE, DOUBLE)

NORMAL = 'normal'
FINAL = 'final'
THIRD_PLACE = 'third_place'
MATCH_TYPES = (NORMAL, FINAL, THIRD_PLACE)


@dataclass(frozen=True)
class Group:
    id: str
    entry_ids: Tuple[EntryId, ...]
    mode: str = SINGLE
    code: Optional[str] = None

    def __post_init__(self):
        # Accept any iterable of ids but store an immutable tuple
        object.__setattr__(self, 'entry_ids', tuple(self.entry_ids))


@dataclass(frozen=True)
class Venue:
    id: VenueId


@dataclass(frozen=True)
class Slot:
    """A (kickoff time, venue) pair available for one match."""
    kickoff_at: datetime
    venue_id: VenueId


@dataclass(frozen=True)
class PlannedMatch:
    stage_id: str
    group_id: str
    round_number: int
    home_entry_id: EntryId
    away_entry_id: EntryId
    kickoff_at: datetime
    venue_id: VenueId


@dataclass(frozen=True)
class Seed:
    seed: int
    entry_id: Optional[EntryId] = None


@dataclass(frozen=True)
class SeedSource:
    """A participant known by seed number, with or without its entry."""
    seed: int
    entry_id: Optional[EntryId] = None
    type: str = field(default='seed', init=False, repr=False)


@dataclass(frozen=True)
class WinnerSource:
    match_id: MatchId
    type: str = field(default='winner', init=False, repr=False)


@dataclass(frozen=True)
class LoserSource:
    match_id: MatchId
    type: str = field(default='loser', init=False, repr=False)


ParticipantSource = Union[SeedSource, WinnerSource, LoserSource]


@dataclass(frozen=True)
class KnockoutMatch:
    id: MatchId
    stage_id: str
    bracket_id: str
    round_number: int
    type: str
    home: ParticipantSource
    away: ParticipantSource


@dataclass(frozen=True)
class MatchMetadata:
    """Decoded form of the metadata blob stored alongside a persisted match."""
    home_source: Optional[ParticipantSource] = None
    away_source: Optional[ParticipantSource] = None
    round_number: Optional[int] = None
    home_label: Optional[str] = None
    away_label: Optional[str] = None
