"""
Kickoff/venue slot allocation for generated fixtures.
"""
import datetime
from typing import List

from fixture_engine.models import Slot, Venue


class SlotAllocator:
    """
    Hands out (kickoff, venue) slots in a fixed order.

    All venues are used at one kickoff time, in the order given, before the
    kickoff advances by the match duration plus the break. The sequence never
    ends; build a new allocator for each generation run.
    """

    def __init__(self, start_at: datetime.datetime, match_duration_minutes, break_minutes, venues: List[Venue]):
        if not venues:
            raise ValueError("SlotAllocator needs at least one venue")
        self.venues = list(venues)
        self.increment = datetime.timedelta(minutes=match_duration_minutes + break_minutes)
        self._current_start = start_at
        self._venue_index = 0

    def next(self) -> Slot:
        venue = self.venues[self._venue_index]
        slot = Slot(kickoff_at=self._current_start, venue_id=venue.id)

        self._venue_index += 1
        if self._venue_index >= len(self.venues):
            self._venue_index = 0
            self._current_start += self.increment

        return slot

    def __iter__(self):
        return self

    def __next__(self) -> Slot:
        return self.next()

    def __repr__(self):
        return (f"SlotAllocator(next_kickoff={self._current_start.isoformat()}, "
                f"venue_index={self._venue_index}, venues={len(self.venues)})")
