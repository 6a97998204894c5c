"""
Base parser class for reading results files.
All parsers must inherit from this class and implement the required methods.

Also holds the field-level helpers shared by every parser.  These never
raise: anything they cannot read comes back as None.
"""

from abc import ABC, abstractmethod
from typing import Optional
import logging
import re

from ..model import Event

logger = logging.getLogger(__name__)

MINUTES_SECONDS_REGEXP = re.compile(r'^(-?)(\d+):(\d\d)$')
HOURS_MINUTES_SECONDS_REGEXP = re.compile(r'^(-?)(\d+):(\d\d):(\d\d)$')
LEADING_NUMBER_REGEXP = re.compile(r'^\s*([+-]?(?:\d+(?:\.\d*)?|\.\d+))')
LEADING_INTEGER_REGEXP = re.compile(r'^\s*([+-]?\d+)')

# Course lengths at least this large are assumed to be in metres.
MIN_LENGTH_IN_METRES = 100


def normalise_line_endings(text: str) -> str:
    """Convert CRLF and CR line endings to LF."""
    return text.replace('\r\n', '\n').replace('\r', '\n')


def parse_time(time_str: Optional[str]) -> Optional[int]:
    """
    Convert a time string to a whole number of seconds.

    Handles formats like:
    - "09:25" (minutes:seconds, any number of minute digits)
    - "1:02:34" (hours:minutes:seconds)

    Anything else, e.g. "-----" or "mp", is a missing time.
    """
    if time_str is None:
        return None

    time_str = time_str.strip()

    match = MINUTES_SECONDS_REGEXP.match(time_str)
    if match:
        seconds = int(match.group(2)) * 60 + int(match.group(3))
    else:
        match = HOURS_MINUTES_SECONDS_REGEXP.match(time_str)
        if not match:
            return None
        seconds = int(match.group(2)) * 3600 + int(match.group(3)) * 60 + int(match.group(4))

    return -seconds if match.group(1) == '-' else seconds


def parse_course_length(length_str: Optional[str]) -> Optional[float]:
    """
    Read a course length in kilometres.

    Either '.' or ',' may be the decimal separator.  Large values are taken
    to be in metres and converted.
    """
    if not length_str:
        return None

    match = LEADING_NUMBER_REGEXP.match(length_str.replace(',', '.'))
    if not match:
        return None

    length = float(match.group(1))
    if length >= MIN_LENGTH_IN_METRES:
        length /= 1000
    return length


def parse_int(text: Optional[str]) -> Optional[int]:
    """Read the integer at the start of `text`, if there is one."""
    if not text:
        return None

    match = LEADING_INTEGER_REGEXP.match(text)
    return int(match.group(1)) if match else None


def parse_course_climb(climb_str: Optional[str]) -> Optional[int]:
    """Read a course climb in metres."""
    return parse_int(climb_str)


class BaseParser(ABC):
    """Abstract base class for results file parsers."""

    # Registry name, set by each subclass.
    name = ''

    def __init__(self):
        # Warnings about individual results that could not be read.
        self.warnings: list[str] = []

    @abstractmethod
    def parse(self, text: str) -> Event:
        """
        Parse a whole results file.

        Args:
            text: The decoded contents of the file.

        Returns:
            The event read.

        Raises:
            WrongFileFormat: if the text is not in this parser's format.
            InvalidData: if the text is in this format but cannot be read.
        """
        pass

    def add_warning(self, message: str):
        """Record a problem that means one result had to be skipped."""
        logger.warning(message)
        self.warnings.append(message)
