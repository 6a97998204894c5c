"""
Command-line entry point: reads a results file and prints what was found in
it.
"""

import json
import logging
import sys
from pathlib import Path

from .config import configure_logging, load_config
from .exceptions import ResultsIngestError
from .model import Event
from .parsers import get_parser, parse_event_data

logger = logging.getLogger(__name__)


class ResultsIngester:
    """Reads results files from disk using the configured parsers."""

    def __init__(self, config: dict = None):
        if config is None:
            config = load_config()
        self.config = config

    def ingest_text(self, text: str, parser_name: str = None) -> Event:
        """Parse results text, with a named parser or by trying each configured parser."""
        if parser_name is not None:
            return get_parser(parser_name).parse(text)
        return parse_event_data(text, self.config['parsers'])

    def ingest_file(self, file_path: str, parser_name: str = None, encoding: str = None) -> Event:
        if encoding is None:
            encoding = self.config['encoding']

        logger.info(f"Reading results file: {file_path}")
        with open(file_path, 'r', encoding=encoding, newline='') as f:
            text = f.read()

        event = self.ingest_text(text, parser_name)
        for warning in event.warnings:
            logger.warning(f"{file_path}: {warning}")
        return event


def format_summary(event: Event) -> str:
    """Human-readable list of the courses and classes in an event."""
    lines = []
    for course in event.courses:
        length = f"{course.length} km" if course.length is not None else "length unknown"
        climb = f"{course.climb} m" if course.climb is not None else "climb unknown"
        lines.append(f"Course {course.name} ({length}, {climb}, {len(course.controls or [])} controls)")
        for course_class in course.classes:
            lines.append(f"  Class {course_class.name}: {len(course_class.results)} results")

    if event.warnings:
        lines.append(f"{len(event.warnings)} warnings:")
        lines.extend(f"  {warning}" for warning in event.warnings)

    return '\n'.join(lines)


def main(argv: list[str] = None) -> int:
    """Main entry point."""
    import argparse

    parser = argparse.ArgumentParser(description='Read an orienteering results file')
    parser.add_argument('file', help='Path to the results file')
    parser.add_argument('--format', '-f', dest='parser_name', help='Parser to use (default: try each in turn)')
    parser.add_argument('--config', '-c', help='Path to config YAML file')
    parser.add_argument('--json', action='store_true', help='Print the event as JSON')
    parser.add_argument('--encoding', help='Text encoding of the results file')

    args = parser.parse_args(argv)

    config = load_config(args.config)
    configure_logging(config)

    if not Path(args.file).exists():
        logger.error(f"File not found: {args.file}")
        return 1

    ingester = ResultsIngester(config)
    try:
        event = ingester.ingest_file(args.file, args.parser_name, args.encoding)
    except ResultsIngestError as e:
        logger.error(f"Could not read {args.file}: {e}")
        return 1
    except ValueError as e:
        logger.error(str(e))
        return 1

    if args.json:
        print(json.dumps(event.to_dict(), indent=2))
    else:
        print(format_summary(event))

    return 0


if __name__ == '__main__':
    sys.exit(main())
