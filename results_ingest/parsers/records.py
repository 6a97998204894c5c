"""
Intermediate records built up while reading line-structured results files,
before they are turned into the event model.
"""

from typing import Optional

from ..exceptions import InvalidData
from ..model import Competitor, Result
from ..status import resolve_status
from .base_parser import parse_time


class CompetitorRecord:
    """Times read from one pair of competitor lines."""

    def __init__(self, cum_times: list):
        self.cum_times = cum_times


class ContinuationRecord(CompetitorRecord):
    """
    A pair of lines with no name, club, class or total time.  Its times carry
    on from the competitor record before it.
    """


class PrimaryRecord(CompetitorRecord):
    """The first pair of lines for a competitor."""

    def __init__(
        self,
        name: str,
        club: str,
        class_name: Optional[str],
        total_time: str,
        cum_times: list,
        competitive: bool
    ):
        super().__init__(cum_times)
        self.name = name
        self.club = club
        self.class_name = class_name
        self.total_time = total_time
        self.competitive = competitive

    def append(self, continuation: ContinuationRecord):
        """Add the times from a continuation record to those read so far."""
        self.cum_times = self.cum_times + continuation.cum_times

    def to_result(self, order: int) -> Result:
        """Convert to a Result, `order` being its 1-based position in its class."""
        cum_times = [0] + self.cum_times
        status = resolve_status(cum_times, competitive=self.competitive)
        return Result(order, None, cum_times, Competitor(self.name, self.club), status)


def make_competitor_record(
    name: str,
    club: str,
    class_name: Optional[str],
    total_time: str,
    cum_times: list,
    competitive: bool
) -> CompetitorRecord:
    """Build a primary record, or a continuation record if there are no identifying details."""
    if name == "" and club == "" and class_name is None and total_time == "" and not competitive:
        return ContinuationRecord(cum_times)
    return PrimaryRecord(name, club, class_name, total_time, cum_times, competitive)


def remove_extra_controls(cum_times: list, split_times: list):
    """
    Remove trailing 'extra' controls from both lists, in place.

    An extra control is one the competitor punched that was not on their
    course.  Its split 'time' starts with an asterisk.
    """
    while split_times and split_times[-1].startswith('*'):
        split_times.pop()
        cum_times.pop()


class CourseParseRecord:
    """A course as read so far: its controls and competitor records."""

    def __init__(self, name: str, distance: Optional[float], climb: Optional[int]):
        self.name = name
        self.distance = distance
        self.climb = climb
        # Control codes, with None for the finish.
        self.controls: list[Optional[str]] = []
        self.competitors: list[PrimaryRecord] = []

    def add_controls(self, controls: list):
        self.controls = self.controls + controls

    def has_all_controls(self) -> bool:
        """The course is complete once its last control is the finish."""
        return len(self.controls) > 0 and self.controls[-1] is None

    def add_competitor(self, competitor: PrimaryRecord):
        """
        Add a competitor, checking they have one time per control.

        Raises:
            InvalidData: if the competitor has the wrong number of times.
        """
        if not competitor.competitive and len(competitor.cum_times) == len(self.controls) - 1:
            # Mispunchers sometimes have the finish split left out altogether
            # rather than shown as missing.
            competitor.cum_times.append(None)

        if parse_time(competitor.total_time) is None and len(competitor.cum_times) == 0:
            competitor.cum_times = [None] * len(self.controls)

        if len(competitor.cum_times) != len(self.controls):
            raise InvalidData(
                f"Competitor '{competitor.name}' should have {len(self.controls)} cumulative times, "
                f"but has {len(competitor.cum_times)} times"
            )

        self.competitors.append(competitor)
