"""Reads orienteering results files into courses, classes and results."""

from .exceptions import InvalidData, ResultsIngestError, WrongFileFormat
from .model import Competitor, Course, CourseClass, Event, Result, ResultStatus
from .parsers import get_parser, parse_event_data

__all__ = [
    'parse_event_data',
    'get_parser',
    'Event',
    'Course',
    'CourseClass',
    'Result',
    'Competitor',
    'ResultStatus',
    'ResultsIngestError',
    'WrongFileFormat',
    'InvalidData',
]
