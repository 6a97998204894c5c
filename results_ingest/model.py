"""
Event model populated by the parsers: competitors, results, classes and
courses.
"""

from enum import Enum
from typing import Optional

from .exceptions import InvalidData


class ResultStatus(Enum):
    """Canonical status of a single result."""
    OK = 'ok'
    NON_COMPETITIVE = 'non_competitive'
    NON_STARTER = 'non_starter'
    NON_FINISHER = 'non_finisher'
    DISQUALIFIED = 'disqualified'
    OVER_MAX_TIME = 'over_max_time'
    OK_DESPITE_MISSING_TIMES = 'ok_despite_missing_times'


def subtract_if_not_none(a: Optional[int], b: Optional[int]) -> Optional[int]:
    return None if a is None or b is None else a - b


def split_times_from_cum_times(cum_times: list) -> list:
    """
    Convert a list of cumulative times into split times.

    The list must start with a zero for the start and contain at least one
    other time.
    """
    if len(cum_times) == 0:
        raise InvalidData("Array of cumulative times must not be empty")
    if cum_times[0] != 0:
        raise InvalidData("Array of cumulative times must have zero as its first item")
    if len(cum_times) == 1:
        raise InvalidData("Array of cumulative times must contain more than just a single zero")

    return [subtract_if_not_none(cum_times[i + 1], cum_times[i]) for i in range(len(cum_times) - 1)]


class Competitor:
    """A person who recorded a result."""

    def __init__(self, name: str, club: str):
        self.name = name
        self.club = club
        self.year_of_birth: Optional[int] = None
        self.gender: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            'name': self.name,
            'club': self.club,
            'year_of_birth': self.year_of_birth,
            'gender': self.gender,
        }


class Result:
    """One competitor's run of a course, as read from the results file."""

    def __init__(
        self,
        order: int,
        start_time: Optional[int],
        cum_times: list,
        owner: Competitor,
        status: ResultStatus = ResultStatus.OK
    ):
        if not isinstance(order, int):
            raise InvalidData(f"Result order must be a number, got {type(order).__name__} '{order}' instead")

        self.order = order
        self.start_time = start_time
        self.owner = owner
        self.status = status
        self.class_name: Optional[str] = None
        self.original_split_times = split_times_from_cum_times(cum_times)
        self.original_cum_times = list(cum_times)

    @property
    def total_time(self) -> Optional[int]:
        if self.status == ResultStatus.OK_DESPITE_MISSING_TIMES or None not in self.original_cum_times:
            return self.original_cum_times[-1]
        return None

    @property
    def is_non_competitive(self) -> bool:
        return self.status == ResultStatus.NON_COMPETITIVE

    @property
    def is_non_starter(self) -> bool:
        return self.status == ResultStatus.NON_STARTER

    @property
    def is_non_finisher(self) -> bool:
        return self.status == ResultStatus.NON_FINISHER

    @property
    def is_disqualified(self) -> bool:
        return self.status == ResultStatus.DISQUALIFIED

    @property
    def is_over_max_time(self) -> bool:
        return self.status == ResultStatus.OVER_MAX_TIME

    @property
    def is_ok_despite_missing_times(self) -> bool:
        return self.status == ResultStatus.OK_DESPITE_MISSING_TIMES

    def completed(self) -> bool:
        """Whether the result has a total time and has not been disqualified."""
        return self.total_time is not None and not self.is_disqualified and not self.is_over_max_time

    def has_any_times(self) -> bool:
        """Whether any time beyond the leading zero was recorded."""
        return any(time is not None for time in self.original_cum_times[1:])

    def to_dict(self) -> dict:
        return {
            'order': self.order,
            'name': self.owner.name,
            'club': self.owner.club,
            'year_of_birth': self.owner.year_of_birth,
            'gender': self.owner.gender,
            'class_name': self.class_name,
            'start_time': self.start_time,
            'total_time': self.total_time,
            'status': self.status.value,
            'completed': self.completed(),
            'cum_times': self.original_cum_times,
            'split_times': self.original_split_times,
        }


class CourseClass:
    """A competition class, with the results of everyone who ran in it."""

    def __init__(self, name: str, num_controls: int, results: list[Result]):
        self.name = name
        self.num_controls = num_controls
        self.results = results
        self.course: Optional['Course'] = None
        for result in self.results:
            result.class_name = name

    def set_course(self, course: 'Course'):
        self.course = course

    def to_dict(self) -> dict:
        return {
            'name': self.name,
            'num_controls': self.num_controls,
            'course': self.course.name if self.course is not None else None,
            'results': [result.to_dict() for result in self.results],
        }


class Course:
    """A course, and the classes that ran it."""

    def __init__(
        self,
        name: str,
        classes: list[CourseClass],
        length: Optional[float],
        climb: Optional[int],
        controls: Optional[list[str]]
    ):
        self.name = name
        self.classes = classes
        self.length = length
        self.climb = climb
        self.controls = controls

    def to_dict(self) -> dict:
        return {
            'name': self.name,
            'length': self.length,
            'climb': self.climb,
            'controls': self.controls,
            'classes': [course_class.name for course_class in self.classes],
        }


class Event:
    """Everything read from one results file."""

    def __init__(self, classes: list[CourseClass], courses: list[Course], warnings: list[str]):
        self.classes = classes
        self.courses = courses
        self.warnings = warnings

    def to_dict(self) -> dict:
        return {
            'classes': [course_class.to_dict() for course_class in self.classes],
            'courses': [course.to_dict() for course in self.courses],
            'warnings': list(self.warnings),
        }
