"""
Recognizers for the HTML results dialects.

Each recognizer knows how to spot one dialect, tidy it up so that every row
of data is on its own line, and pull courses, controls and competitors out
of individual lines.  The line-by-line scan itself is shared, and lives in
html_results.py.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional
import logging
import re

from bs4 import BeautifulSoup, Comment, Tag

from ..exceptions import InvalidData
from .base_parser import parse_course_length, parse_time
from .records import CompetitorRecord, make_competitor_record, remove_extra_controls

logger = logging.getLogger(__name__)

DISTANCE_FIND_REGEXP = re.compile(r'([0-9.,]+)\s*(?:Km|km)')
CLIMB_FIND_REGEXP = re.compile(r'(\d+)\s*(?:Cm|Hm|hm|m)')

# ASCII digits only, optionally signed, with a decimal point and exponent.
NUMBER_REGEXP = re.compile(r'[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?')

CLOSE_FONT = '</font>'


def parse_fragment(html: str) -> BeautifulSoup:
    """Parse one line of HTML."""
    return BeautifulSoup(html, 'html.parser')


def node_text(node) -> str:
    """Text of a top-level node of a fragment, ignoring comments."""
    if isinstance(node, Tag):
        return node.get_text()
    return '' if isinstance(node, Comment) else str(node)


def _element_texts(soup: BeautifulSoup, tag_name: str) -> list[str]:
    return [element.get_text() for element in soup.find_all(tag_name)]


def get_font_bits(soup: BeautifulSoup) -> list[str]:
    """Text inside each <font> element of a line."""
    return _element_texts(soup, 'font')


def get_table_data_bits(soup: BeautifulSoup) -> list[str]:
    """Text inside each <td> element of a line, trimmed."""
    return [bit.strip() for bit in _element_texts(soup, 'td')]


def get_non_empty_table_data_bits(soup: BeautifulSoup) -> list[str]:
    return [bit for bit in get_table_data_bits(soup) if bit != '']


def get_non_empty_table_header_bits(soup: BeautifulSoup) -> list[str]:
    return [bit for bit in _element_texts(soup, 'th') if bit != '']


def get_bit(bits: list[str], index: int) -> str:
    """The bit at `index`, or an empty string if the line is too short."""
    return bits[index] if 0 <= index < len(bits) else ''


def split_by_whitespace(text: str) -> list[str]:
    return text.split()


def has_number(text: str) -> bool:
    """Whether the text is a number, such as a position '1' or '1.'."""
    return NUMBER_REGEXP.fullmatch(text.strip()) is not None


def try_read_distance(text: str) -> Optional[float]:
    match = DISTANCE_FIND_REGEXP.search(text)
    return parse_course_length(match.group(1)) if match else None


def try_read_climb(text: str) -> Optional[int]:
    match = CLIMB_FIND_REGEXP.search(text)
    return int(match.group(1)) if match else None


def read_control_codes(labels: list[str]) -> list[Optional[str]]:
    """
    Read control codes from labels of the form '1(152)', '2(138)', ..., 'F'.

    The finish has no code, so comes back as None.

    Raises:
        InvalidData: if a label other than the last has no code.
    """
    control_codes = []
    for index, label in enumerate(labels):
        paren_pos = label.find('(')
        if paren_pos > -1 and label.endswith(')'):
            control_codes.append(label[paren_pos + 1:-1])
        elif index + 1 == len(labels):
            control_codes.append(None)
        else:
            raise InvalidData(f"Unrecognised control header label: '{label}'")

    return control_codes


def _read_cum_times(cum_time_strs: list[str], split_times: list[str]) -> list:
    cum_times = [parse_time(time_str) for time_str in cum_time_strs]
    remove_extra_controls(cum_times, split_times)
    return cum_times


class LineKind(Enum):
    IGNORE = 'ignore'
    COURSE_HEADER = 'course_header'
    BODY = 'body'


class CourseHeader:
    """Name, length and climb read from a course header line."""

    def __init__(self, name: str, distance: Optional[float], climb: Optional[int]):
        self.name = name
        self.distance = distance
        self.climb = climb


class HtmlRecognizer(ABC):
    """
    Base class for recognizers of one HTML dialect.

    Recognizers may hold state learnt from earlier lines, so use a new
    instance for each file.
    """

    name = ''

    def __init__(self):
        # The last line parsed, as a line is usually classified and then read.
        self._last_line: Optional[str] = None
        self._last_soup: Optional[BeautifulSoup] = None

    def soup_for_line(self, line: str) -> BeautifulSoup:
        """The parsed line, reusing the previous parse if it was the same line."""
        if line != self._last_line:
            self._last_line = line
            self._last_soup = parse_fragment(line)
        return self._last_soup

    @abstractmethod
    def is_text_of_this_format(self, text: str) -> bool:
        """Whether the text looks like this dialect."""
        pass

    @abstractmethod
    def preprocess(self, text: str) -> str:
        """Tidy the text so that each course header, controls row and competitor row is on its own line."""
        pass

    @abstractmethod
    def can_ignore_line(self, line: str) -> bool:
        pass

    @abstractmethod
    def is_course_header_line(self, line: str) -> bool:
        pass

    @abstractmethod
    def parse_course_header_line(self, line: str) -> CourseHeader:
        pass

    @abstractmethod
    def parse_controls_line(self, line: str) -> list[Optional[str]]:
        pass

    @abstractmethod
    def parse_competitor(self, first_line: str, second_line: str) -> CompetitorRecord:
        """Read the pair of lines for a competitor: cumulative times first, then splits."""
        pass

    def classify_line(self, line: str) -> LineKind:
        if self.can_ignore_line(line):
            return LineKind.IGNORE
        if self.is_course_header_line(line):
            return LineKind.COURSE_HEADER
        return LineKind.BODY


class OldHtmlFormatRecognizer(HtmlRecognizer):
    """
    Preformatted text inside a <pre> element, with some columns wrapped in
    <font> elements.
    """

    name = 'old'

    def __init__(self):
        super().__init__()
        # Three or four columns come before the times, depending on whether
        # there is a start-number column.  Worked out from the first
        # competitor.
        self.preceding_column_count: Optional[int] = None

    def is_text_of_this_format(self, text: str) -> bool:
        return '<pre>' in text and '<font' in text

    def preprocess(self, text: str) -> str:
        pre_pos = text.find('<pre>')
        line_end_pos = text.find('\n', pre_pos)
        text = text[line_end_pos + 1:]

        text = re.sub(r'\n{2,}', '\n', text)

        close_pre_pos = text.rfind('</pre>')
        if close_pre_pos == -1:
            raise InvalidData("Found opening <pre> but no closing </pre>")

        line_end_pos = text.rfind('\n', 0, close_pre_pos + 1)
        text = text[:line_end_pos] if line_end_pos > -1 else ''
        return text.strip()

    def can_ignore_line(self, line: str) -> bool:
        return line == ''

    def is_course_header_line(self, line: str) -> bool:
        return len(get_font_bits(self.soup_for_line(line))) == 2

    def parse_course_header_line(self, line: str) -> CourseHeader:
        bits = get_font_bits(self.soup_for_line(line))
        if len(bits) != 2:
            raise InvalidData("Course header line should have two parts")

        name_and_controls, distance_and_climb = bits
        name = name_and_controls.split('(', 1)[0]

        return CourseHeader(
            name.strip(),
            try_read_distance(distance_and_climb),
            try_read_climb(distance_and_climb)
        )

    def parse_controls_line(self, line: str) -> list[Optional[str]]:
        last_font_pos = line.rfind(CLOSE_FONT)
        controls_text = line if last_font_pos == -1 else line[last_font_pos + len(CLOSE_FONT):]
        return read_control_codes(split_by_whitespace(controls_text))

    def _split_preceding_columns(self, soup: BeautifulSoup) -> tuple[list, list]:
        """
        Split the top-level nodes of a line after the <font> element that ends
        the columns before the times.
        """
        nodes = list(soup.contents)
        split_pos = 0
        fonts_seen = 0
        for index, node in enumerate(nodes):
            if fonts_seen == self.preceding_column_count:
                break
            if isinstance(node, Tag) and node.name == 'font':
                fonts_seen += 1
                split_pos = index + 1

        return nodes[:split_pos], nodes[split_pos:]

    def _read_times(self, soup: BeautifulSoup) -> list[str]:
        _, times_nodes = self._split_preceding_columns(soup)
        return split_by_whitespace(''.join(node_text(node) for node in times_nodes))

    def _read_class_name(self, soup: BeautifulSoup) -> Optional[str]:
        # The class name is the unwrapped text among the preceding columns.
        preceding_nodes, _ = self._split_preceding_columns(soup)
        unwrapped = ''.join(
            node_text(node) for node in preceding_nodes
            if not (isinstance(node, Tag) and node.name == 'font')
        )
        parts = split_by_whitespace(unwrapped)
        return parts[0] if parts else None

    def parse_competitor(self, first_line: str, second_line: str) -> CompetitorRecord:
        first_soup = self.soup_for_line(first_line)
        second_soup = self.soup_for_line(second_line)
        first_bits = get_font_bits(first_soup)
        second_bits = get_font_bits(second_soup)

        if self.preceding_column_count is None:
            column1 = get_bit(first_bits, 1).strip()
            self.preceding_column_count = 4 if re.match(r'^\d*$', column1) else 3
            logger.debug(f"Old-format results have {self.preceding_column_count} columns before the times")

        competitive = has_number(get_bit(first_bits, 0))
        name = get_bit(first_bits, self.preceding_column_count - 2).strip()
        total_time = get_bit(first_bits, self.preceding_column_count - 1).strip()
        club = get_bit(second_bits, self.preceding_column_count - 2).strip()

        split_times = self._read_times(second_soup)
        cum_times = _read_cum_times(self._read_times(first_soup), split_times)

        class_name = self._read_class_name(first_soup) if name else None

        return make_competitor_record(name, club, class_name, total_time, cum_times, competitive)


class NewHtmlFormatRecognizer(HtmlRecognizer):
    """Tabular HTML with a header table and a results table for each course."""

    name = 'new'

    def __init__(self):
        super().__init__()
        # Index of the first time cell, learnt from each table header row.
        self.times_offset: Optional[int] = None

    def is_text_of_this_format(self, text: str) -> bool:
        return text.count('<table') >= 5

    def preprocess(self, text: str) -> str:
        # Remove the first table and the end of the <div> it is inside.
        table_end_pos = text.find('</table>')
        if table_end_pos == -1:
            raise InvalidData("Could not find any closing </table> tags")

        text = text[table_end_pos + len('</table>'):]

        close_div_pos = text.find('</div>')
        open_table_pos = text.find('<table')
        if -1 < close_div_pos < open_table_pos:
            text = text[close_div_pos + len('</div>'):]

        # One table row per line, with table tags on lines of their own.
        text = re.sub(r'>\n+<', '><', text)
        text = text.replace('><tr>', '>\n<tr>').replace('</tr><', '</tr>\n<')
        text = text.replace('><table', '>\n<table').replace('</table><', '</table>\n<')

        text = re.sub(r'</col[^>]*>', '', text)

        # Spacer rows holding only a non-breaking space, with or without its
        # semicolon.
        text = re.sub(r'<tr[^>]*><td[^>]*>(?:<nobr>)?&nbsp;?(?:</nobr>)?</td></tr>', '', text)

        text = re.sub(r'<a id="[^"]*"></a>', '', text)
        text = re.sub(r'<div id="navigation">.*?</div>', '', text, flags=re.DOTALL)

        text = text.replace('</body></html>', '', 1)
        return text.strip()

    def can_ignore_line(self, line: str) -> bool:
        if '<th>' in line:
            self.times_offset = len(get_non_empty_table_header_bits(self.soup_for_line(line)))
            return True
        return line == '' or '<table' in line or '</table>' in line

    def is_course_header_line(self, line: str) -> bool:
        return '<td id="header"' in line

    def parse_course_header_line(self, line: str) -> CourseHeader:
        bits = get_non_empty_table_data_bits(self.soup_for_line(line))
        if not bits:
            raise InvalidData("No parts found in course header line")

        name = bits[0].split('(', 1)[0].strip()

        distance = None
        climb = None
        for bit in bits[1:]:
            if distance is None:
                distance = try_read_distance(bit)
            if climb is None:
                climb = try_read_climb(bit)

        return CourseHeader(name, distance, climb)

    def parse_controls_line(self, line: str) -> list[Optional[str]]:
        return read_control_codes(get_non_empty_table_data_bits(self.soup_for_line(line)))

    def _read_times(self, bits: list[str]) -> list[str]:
        end_pos = len(bits)
        while end_pos > 0 and bits[end_pos - 1] == '':
            end_pos -= 1

        return [bit for bit in bits[self.times_offset:end_pos] if bit != '']

    def parse_competitor(self, first_line: str, second_line: str) -> CompetitorRecord:
        if self.times_offset is None:
            raise InvalidData("Found competitor data before any table header row")

        first_bits = get_table_data_bits(self.soup_for_line(first_line))
        second_bits = get_table_data_bits(self.soup_for_line(second_line))

        competitive = has_number(get_bit(first_bits, 0))
        name_offset = 1 if self.times_offset == 3 else 2
        name = get_bit(first_bits, name_offset)
        total_time = get_bit(first_bits, self.times_offset - 1)
        club = get_bit(second_bits, name_offset)
        class_name = get_bit(first_bits, 3) if self.times_offset == 5 and name != '' else None

        split_times = self._read_times(second_bits)
        cum_times = _read_cum_times(self._read_times(first_bits), split_times)

        # Missing cumulative times have no split at all.
        present_cum_time_count = sum(1 for time in cum_times if time is not None)
        if present_cum_time_count != len(split_times):
            raise InvalidData(
                f"Cumulative and split times do not have the same length: "
                f"{present_cum_time_count} cumulative times, {len(split_times)} split times"
            )

        return make_competitor_record(name, club, class_name, total_time, cum_times, competitive)


class OEventTabularHtmlFormatRecognizer(HtmlRecognizer):
    """OEvent's tabular HTML: a header table, then one table of everything."""

    name = 'oevent_tabular'

    COURSE_HEADER_REGEXP = re.compile(r'^(.*?)\s+\((\d+)m,\s*(\d+)m\)$')

    def __init__(self):
        super().__init__()
        # With classes, there is an extra column before the times.
        self.uses_classes = False

    @property
    def times_start(self) -> int:
        return 5 if self.uses_classes else 4

    def is_text_of_this_format(self, text: str) -> bool:
        return text.count('<table') == 2

    def preprocess(self, text: str) -> str:
        table_end_pos = text.find('</table>')
        if table_end_pos == -1:
            raise InvalidData("Could not find any closing </table> tags")

        # The results table has 25 columns with classes and 24 without.
        if '<td colspan="25">' in text:
            self.uses_classes = True

        text = text[table_end_pos + len('</table>'):]
        text = re.sub(r'<tr[^>]*><td colspan=[^>]*>&nbsp;</td></tr>', '', text)
        text = re.sub(r'\n{2,}', '\n', text)
        text = text.replace('</body>', '', 1).replace('</html>', '', 1)
        return text.strip()

    def can_ignore_line(self, line: str) -> bool:
        return line == '' or '<table' in line or '</table>' in line or '<hr>' in line

    def is_course_header_line(self, line: str) -> bool:
        return '<tr class="clubName"' in line

    def parse_course_header_line(self, line: str) -> CourseHeader:
        bits = get_non_empty_table_data_bits(self.soup_for_line(line))
        if not bits:
            raise InvalidData("No parts found in course header line")

        match = self.COURSE_HEADER_REGEXP.match(bits[0])
        if not match:
            return CourseHeader(bits[0].strip(), None, None)

        return CourseHeader(match.group(1).strip(), int(match.group(2)) / 1000, int(match.group(3)))

    def parse_controls_line(self, line: str) -> list[Optional[str]]:
        # Controls are labelled '1-152', '2-138', ..., with the finish
        # having no code.
        controls = []
        for bit in get_non_empty_table_data_bits(self.soup_for_line(line)):
            dash_pos = bit.find('-')
            controls.append(None if dash_pos == -1 else bit[dash_pos + 1:])
        return controls

    def _read_times(self, bits: list[str]) -> list[str]:
        end_pos = len(bits)
        while end_pos > 0 and bits[end_pos - 1] == '':
            end_pos -= 1

        # Every other cell holds a rank.
        return [bit for bit in bits[self.times_start:end_pos:2] if bit != '']

    def parse_competitor(self, first_line: str, second_line: str) -> CompetitorRecord:
        first_bits = get_table_data_bits(self.soup_for_line(first_line))
        second_bits = get_table_data_bits(self.soup_for_line(second_line))

        competitive = has_number(get_bit(first_bits, 0))
        name = get_bit(first_bits, 2)
        total_time = get_bit(first_bits, self.times_start - 1)
        class_name = get_bit(first_bits, 3) if self.uses_classes and name != '' else None
        club = get_bit(second_bits, 2)

        # A control punched after a missed one has a cumulative time but no
        # split.  Give it a placeholder split so the lists stay in step.
        for index in range(self.times_start, min(len(first_bits), len(second_bits)), 2):
            if first_bits[index] != '' and second_bits[index] == '':
                second_bits[index] = '----'

        split_times = self._read_times(second_bits)
        cum_times = _read_cum_times(self._read_times(first_bits), split_times)

        if len(cum_times) != len(split_times):
            raise InvalidData(
                f"Cumulative and split times do not have the same length: "
                f"{len(cum_times)} cumulative times, {len(split_times)} split times"
            )

        return make_competitor_record(name, club, class_name, total_time, cum_times, competitive)


# Order in which the dialects are tried.
RECOGNIZER_CLASSES = [OldHtmlFormatRecognizer, NewHtmlFormatRecognizer, OEventTabularHtmlFormatRecognizer]
