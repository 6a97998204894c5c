"""
Parser for OE CSV results exports.

One line per competitor.  The columns before the controls vary between
exports: control 1 sits at column 44, 46 or 60, and the other columns are
found relative to it.
"""

from typing import Callable, Optional
import logging
import re

from ..course_graph import CourseDetails, build_courses
from ..exceptions import InvalidData, WrongFileFormat
from ..model import Competitor, CourseClass, Event, Result
from ..status import is_placing_non_numeric, resolve_status, strip_placing_suffix
from .base_parser import (
    BaseParser,
    normalise_line_endings,
    parse_course_climb,
    parse_course_length,
    parse_int,
    parse_time,
)

logger = logging.getLogger(__name__)

DELIMITERS = [';', ',', '\t', '\\']

# Fewest columns a row can have before its controls data.
MIN_CONTROLS_OFFSET = 37

CONTROL_CODE_REGEXP = re.compile(r'^[A-Za-z0-9]+$')


def _build_column_indexes() -> dict[int, dict[str, int]]:
    column_indexes = {}
    for offset in (44, 46, 60):
        column_indexes[offset] = {
            'course': offset - 7,
            'distance': offset - 6,
            'climb': offset - 5,
            'control_count': offset - 4,
            'placing': offset - 3,
            'start_punch': offset - 2,
            'finish': offset - 1,
            'control1': offset,
        }

    for offset in (44, 46):
        column_indexes[offset].update({
            'non_competitive': offset - 38,
            'start_time': offset - 37,
            'time': offset - 35,
            'classifier': offset - 34,
            'club': offset - 31,
            'class_name': offset - 28,
        })

    column_indexes[44].update({'combined_name': 3, 'year_of_birth': 4})
    column_indexes[46].update({'surname': 3, 'forename': 4, 'year_of_birth': 5, 'gender': 6})

    # The 'nameless' export: class and club may be blank, with the course name
    # and club number standing in for them.
    column_indexes[60].update({
        'surname': 5,
        'forename': 6,
        'year_of_birth': 7,
        'gender': 8,
        'combined_name': 3,
        'non_competitive': 10,
        'start_time': 11,
        'time': 13,
        'classifier': 14,
        'club_fallback': 18,
        'club': 20,
        'class_name': 26,
        'class_name_fallback': column_indexes[60]['course'],
    })

    return column_indexes


# Column indexes for each supported position of control 1, in the order the
# positions are tried.
COLUMN_INDEXES = _build_column_indexes()


def dequote(value: str) -> str:
    """Remove surrounding double quotes from a cell, un-doubling any inside."""
    if value.startswith('"') and value.endswith('"'):
        value = value[1:-1].replace('""', '"').strip()
    return value


def split_row(line: str, delimiter: str) -> list[str]:
    return [dequote(cell.strip()) for cell in line.split(delimiter)]


def _is_blank_or_time(cell: str) -> bool:
    return cell.strip() == '' or parse_time(cell) is not None


def identify_delimiter(lines: list[str]) -> str:
    """
    Work out which delimiter separates the columns.

    The first delimiter that splits the first data line into enough columns
    wins.

    Raises:
        WrongFileFormat: if there is no data line or no delimiter fits.
    """
    if len(lines) <= 1:
        raise WrongFileFormat("No data found to read")

    first_data_line = lines[1]
    for delimiter in DELIMITERS:
        if len(first_data_line.split(delimiter)) > MIN_CONTROLS_OFFSET:
            return delimiter

    raise WrongFileFormat("Data appears not to be in the OE CSV format")


def identify_format_variation(lines: list[str], delimiter: str) -> dict[str, int]:
    """
    Work out where control 1 is, and so which columns hold which data.

    Returns:
        The column indexes for the matching layout.

    Raises:
        WrongFileFormat: if control 1 is not at any supported position.
    """
    first_row = split_row(lines[1], delimiter)

    for offset, column_indexes in COLUMN_INDEXES.items():
        # Want a control code at the offset, with the start and finish
        # columns before it blank or holding times.
        if (offset < len(first_row)
                and CONTROL_CODE_REGEXP.match(first_row[offset])
                and _is_blank_or_time(first_row[offset - 2])
                and _is_blank_or_time(first_row[offset - 1])):

            # No control count means this is probably some other CSV format
            # that happens to line up.
            if first_row[column_indexes['control_count']].strip() != '':
                return column_indexes

    raise WrongFileFormat("Did not find control 1 at any of the supported indexes")


class OeClassData:
    """Results of one class, collected while reading rows."""

    def __init__(self, num_controls: int):
        self.num_controls = num_controls
        self.results: list[Result] = []


class OeRowReader:
    """
    Reads the data rows of one OE CSV file, collecting results by class and
    details of each course.

    Only use an instance to read one file.
    """

    def __init__(self, delimiter: str, column_indexes: dict[str, int], add_warning: Callable[[str], None]):
        self.delimiter = delimiter
        self.columns = column_indexes
        self.classes: dict[str, OeClassData] = {}
        self.course_details: dict[str, CourseDetails] = {}
        self.class_course_pairs: list[tuple[str, str]] = []
        # Records why a row had to be skipped.
        self.add_warning = add_warning

    def _cell(self, row: list[str], column: str) -> str:
        return row[self.columns[column]]

    def get_class_name(self, row: list[str]) -> str:
        class_name = self._cell(row, 'class_name')
        if class_name == '' and 'class_name_fallback' in self.columns:
            class_name = self._cell(row, 'class_name_fallback')
        return class_name

    def get_course_name(self, row: list[str]) -> str:
        return self._cell(row, 'course')

    def get_start_time(self, row: list[str]) -> Optional[int]:
        """Start punch time if there is one, otherwise the allocated start time."""
        start_time = self._cell(row, 'start_punch')
        if start_time == '':
            start_time = self._cell(row, 'start_time')
        return parse_time(start_time)

    def get_name(self, row: list[str]) -> str:
        name = ''
        if 'forename' in self.columns and 'surname' in self.columns:
            name = f"{self._cell(row, 'forename')} {self._cell(row, 'surname')}".strip()

        if name == '' and 'combined_name' in self.columns:
            name = self._cell(row, 'combined_name')

        return name

    def get_club(self, row: list[str]) -> str:
        club = self._cell(row, 'club')
        if club == '' and 'club_fallback' in self.columns:
            club = self._cell(row, 'club_fallback')
        return club

    def get_num_controls(self, row: list[str], line_number: int) -> Optional[int]:
        """
        Number of controls for the competitor on this row, or None (with a
        warning recorded) if it cannot be worked out.
        """
        class_name = self.get_class_name(row)
        if class_name.strip() == '':
            name = self.get_name(row) or '<name unknown>'
            self.add_warning(f"Could not find a class for competitor '{name}' (line {line_number})")
            return None

        if class_name in self.classes:
            return self.classes[class_name].num_controls

        control_count = self._cell(row, 'control_count')
        num_controls = parse_int(control_count)
        if num_controls is None:
            name = self.get_name(row) or '<name unknown>'
            self.add_warning(
                f"Could not read the control count '{control_count}' for competitor '{name}' "
                f"from line {line_number}"
            )
        return num_controls

    def read_cumulative_times(self, row: list[str], num_controls: int) -> list:
        """Cumulative times, starting with zero and ending with the total time."""
        cum_times = [0]
        control1 = self.columns['control1']
        for control_index in range(num_controls):
            cell_index = control1 + 1 + 2 * control_index
            cum_times.append(parse_time(row[cell_index]) if cell_index < len(row) else None)

        total_time = parse_time(self._cell(row, 'time'))
        if total_time is None:
            # Some exports leave the time blank, so work it out from the
            # start and finish.
            start_time = self.get_start_time(row)
            finish_time = parse_time(self._cell(row, 'finish'))
            if start_time is not None and finish_time is not None:
                total_time = finish_time - start_time

        cum_times.append(total_time)
        return cum_times

    def create_class_if_necessary(self, row: list[str], num_controls: int):
        class_name = self.get_class_name(row)
        if class_name not in self.classes:
            self.classes[class_name] = OeClassData(num_controls)

    def create_course_if_necessary(self, row: list[str], num_controls: int):
        course_name = self.get_course_name(row)
        if course_name not in self.course_details:
            control1 = self.columns['control1']
            controls = [
                row[control1 + 2 * control_index] if control1 + 2 * control_index < len(row) else ''
                for control_index in range(num_controls)
            ]
            self.course_details[course_name] = CourseDetails(
                parse_course_length(self._cell(row, 'distance')),
                parse_course_climb(self._cell(row, 'climb')),
                controls
            )

    def create_class_course_pair_if_necessary(self, row: list[str]):
        pair = (self.get_class_name(row), self.get_course_name(row))
        if pair not in self.class_course_pairs:
            self.class_course_pairs.append(pair)

    def add_competitor(self, row: list[str], cum_times: list):
        class_data = self.classes[self.get_class_name(row)]
        placing = self._cell(row, 'placing')
        name = strip_placing_suffix(self.get_name(row), placing)

        competitor = Competitor(name, self.get_club(row))
        competitor.year_of_birth = parse_int(self._cell(row, 'year_of_birth'))
        if 'gender' in self.columns and self._cell(row, 'gender') in ('M', 'F'):
            competitor.gender = self._cell(row, 'gender')

        # A non-numeric placing on a completed run is taken to mean the
        # competitor was non-competitive.
        competitive = not (self._cell(row, 'non_competitive') == '1' or is_placing_non_numeric(placing))
        status = resolve_status(cum_times, competitive=competitive, classifier=self._cell(row, 'classifier'))

        order = len(class_data.results) + 1
        class_data.results.append(Result(order, self.get_start_time(row), cum_times, competitor, status))

    def read_line(self, line: str, line_number: int):
        """
        Read one line of competitor data.

        Raises:
            InvalidData: if the line is too short to hold a competitor.
        """
        if line.strip() == '':
            return

        row = split_row(line, self.delimiter)

        if len(row) < MIN_CONTROLS_OFFSET:
            raise InvalidData(
                f"Too few items on line {line_number} of the input file: "
                f"expected at least {MIN_CONTROLS_OFFSET}, got {len(row)}"
            )
        if len(row) <= self.columns['control1']:
            raise InvalidData(
                f"Too few items on line {line_number} of the input file: "
                f"expected at least {self.columns['control1'] + 1}, got {len(row)}"
            )

        num_controls = self.get_num_controls(row, line_number)
        if num_controls is None:
            return

        cum_times = self.read_cumulative_times(row, num_controls)
        self.create_class_if_necessary(row, num_controls)
        self.create_course_if_necessary(row, num_controls)
        self.create_class_course_pair_if_necessary(row)
        self.add_competitor(row, cum_times)

    def create_classes(self) -> list[CourseClass]:
        """All the classes read, sorted by name."""
        return [
            CourseClass(class_name, self.classes[class_name].num_controls, self.classes[class_name].results)
            for class_name in sorted(self.classes)
        ]


class OeCsvParser(BaseParser):
    """Parser for OE CSV exports (44-, 46- and 60-column layouts)."""

    name = 'oe_csv'

    def parse(self, text: str) -> Event:
        self.warnings = []
        lines = normalise_line_endings(text).split('\n')

        delimiter = identify_delimiter(lines)
        column_indexes = identify_format_variation(lines, delimiter)
        logger.debug(f"Reading OE CSV data delimited by {delimiter!r} with control 1 at column {column_indexes['control1']}")

        reader = OeRowReader(delimiter, column_indexes, self.add_warning)

        # Line numbers count from the first line after the header.
        for line_number, line in enumerate(lines[1:], start=1):
            reader.read_line(line, line_number)

        classes = reader.create_classes()
        if not classes and self.warnings:
            # Every competitor gave a warning, so this is probably not OE CSV
            # after all.
            raise WrongFileFormat(
                "This file may have looked vaguely like an OE CSV file but no data could be read out of it"
            )

        courses = build_courses(reader.class_course_pairs, classes, reader.course_details, self.warnings)

        num_results = sum(len(course_class.results) for course_class in classes)
        logger.info(f"Read {num_results} results in {len(classes)} classes on {len(courses)} courses")

        return Event(classes, courses, self.warnings)
