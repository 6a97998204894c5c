"""
Parser for HTML results pages.

The page is matched against each known dialect in turn.  The first dialect
that recognizes it is used to read it: its recognizer tidies the text, and
the lines are then scanned for course headers, controls and pairs of
competitor lines.
"""

from typing import Iterator, Optional
import logging

from ..exceptions import InvalidData, WrongFileFormat
from ..model import Course, CourseClass, Event
from .base_parser import BaseParser, normalise_line_endings
from .html_recognizers import RECOGNIZER_CLASSES, HtmlRecognizer, LineKind
from .records import ContinuationRecord, CourseParseRecord, PrimaryRecord

logger = logging.getLogger(__name__)


class HtmlResultsParser:
    """
    Reads preprocessed HTML results using one recognizer.

    Only use an instance to read one file.
    """

    def __init__(self, recognizer: HtmlRecognizer):
        self.recognizer = recognizer
        self.courses: list[CourseParseRecord] = []
        self.current_course: Optional[CourseParseRecord] = None
        self.current_competitor: Optional[PrimaryRecord] = None

    def _add_current_competitor_if_necessary(self):
        if self.current_competitor is not None:
            self.current_course.add_competitor(self.current_competitor)
            self.current_competitor = None

    def _add_current_competitor_and_course_if_necessary(self):
        self._add_current_competitor_if_necessary()
        if self.current_course is not None:
            self.courses.append(self.current_course)

    def _read_competitor_lines(self, first_line: str, lines: Iterator[str]):
        second_line = next(lines, None)
        if second_line is None:
            raise InvalidData(
                f"Hit end of input data unexpectedly while parsing competitor: first line was '{first_line}'"
            )

        record = self.recognizer.parse_competitor(first_line, second_line)
        if isinstance(record, ContinuationRecord):
            if self.current_competitor is None:
                raise InvalidData("First row of competitor data has no name nor time")
            self.current_competitor.append(record)
        else:
            self._add_current_competitor_if_necessary()
            self.current_competitor = record

    def read_courses(self, text: str) -> list[CourseParseRecord]:
        """
        Scan the lines of the text, collecting courses and their competitors.

        Raises:
            InvalidData: if the data is malformed or there are no courses.
        """
        lines = iter(text.split('\n'))
        for line in lines:
            kind = self.recognizer.classify_line(line)
            if kind == LineKind.IGNORE:
                continue

            if kind == LineKind.COURSE_HEADER:
                self._add_current_competitor_and_course_if_necessary()
                header = self.recognizer.parse_course_header_line(line)
                self.current_course = CourseParseRecord(header.name, header.distance, header.climb)
            elif self.current_course is None:
                # Not yet reached the first course.
                continue
            elif self.current_course.has_all_controls():
                self._read_competitor_lines(line, lines)
            else:
                self.current_course.add_controls(self.recognizer.parse_controls_line(line))

        self._add_current_competitor_and_course_if_necessary()

        if not self.courses:
            raise InvalidData("No competitor data was found")

        return self.courses

    def _are_classes_unique_within_courses(self) -> bool:
        class_to_course = {}
        for course in self.courses:
            for competitor in course.competitors:
                if class_to_course.setdefault(competitor.class_name, course.name) != course.name:
                    return False
        return True

    def create_event(self) -> Event:
        """
        Build the event from the courses read.

        Competitors are grouped by their class names, unless some competitor
        has no class or a class appears on more than one course.  In that
        case each course has a single class named after the course.
        """
        all_have_classes = all(
            competitor.class_name is not None
            for course in self.courses
            for competitor in course.competitors
        )
        use_class_names = all_have_classes and self._are_classes_unique_within_courses()

        classes = []
        courses = []
        for course_record in self.courses:
            competitors_by_class: dict[str, list[PrimaryRecord]] = {}
            for competitor in course_record.competitors:
                class_name = competitor.class_name if use_class_names else course_record.name
                competitors_by_class.setdefault(class_name, []).append(competitor)

            num_controls = len(course_record.controls) - 1
            classes_for_course = []
            for class_name, competitors in competitors_by_class.items():
                results = [competitor.to_result(index + 1) for index, competitor in enumerate(competitors)]
                classes_for_course.append(CourseClass(class_name, num_controls, results))

            course = Course(
                course_record.name,
                classes_for_course,
                course_record.distance,
                course_record.climb,
                course_record.controls[:-1]
            )
            for course_class in classes_for_course:
                course_class.set_course(course)

            classes.extend(classes_for_course)
            courses.append(course)

        return Event(classes, courses, [])

    def parse(self, text: str) -> Event:
        self.read_courses(text)
        return self.create_event()


class HtmlParser(BaseParser):
    """Parser for HTML results pages in any of the known dialects."""

    name = 'html'

    def parse(self, text: str) -> Event:
        self.warnings = []
        text = normalise_line_endings(text)

        for recognizer_class in RECOGNIZER_CLASSES:
            recognizer = recognizer_class()
            if recognizer.is_text_of_this_format(text):
                logger.debug(f"Reading HTML results with the '{recognizer.name}' recognizer")
                event = HtmlResultsParser(recognizer).parse(recognizer.preprocess(text))

                num_results = sum(len(course_class.results) for course_class in event.classes)
                logger.info(f"Read {num_results} results in {len(event.classes)} classes on {len(event.courses)} courses")
                return event

        raise WrongFileFormat("No HTML recognizers recognised this as HTML they could parse")
