"""Parser registry and imports."""

from typing import Optional
import logging

from ..exceptions import WrongFileFormat
from ..model import Event
from .base_parser import BaseParser
from .html_results import HtmlParser
from .oe_csv import OeCsvParser

logger = logging.getLogger(__name__)

# Registry of available parsers.  Parsers keep per-file state, so these are
# classes; get_parser() makes a new instance each time.
PARSERS = {
    'oe_csv': OeCsvParser,
    'html': HtmlParser,
}

# Order in which parsers are tried when the format is not known.
DEFAULT_PARSER_ORDER = ['oe_csv', 'html']


def get_parser(name: str) -> BaseParser:
    """Get a new parser by name."""
    if name not in PARSERS:
        raise ValueError(f"Unknown parser: {name}. Available: {list(PARSERS.keys())}")
    return PARSERS[name]()


def parse_event_data(text: str, parser_names: Optional[list[str]] = None) -> Event:
    """
    Parse results data in whichever supported format it is in.

    Args:
        text: The contents of the results file.
        parser_names: Parsers to try, in order.  Defaults to
            DEFAULT_PARSER_ORDER.

    Returns:
        The event read by the first parser that recognized the data.

    Raises:
        WrongFileFormat: if no parser recognized the data.
        InvalidData: if a parser recognized the data but could not read it.
        ValueError: if a parser name is unknown.
    """
    if parser_names is None:
        parser_names = DEFAULT_PARSER_ORDER

    for name in parser_names:
        parser = get_parser(name)
        try:
            event = parser.parse(text)
        except WrongFileFormat as e:
            logger.debug(f"Parser '{name}' did not recognize the data: {e}")
            continue

        logger.info(f"Parsed data with the '{name}' parser")
        return event

    raise WrongFileFormat(f"The data was not in any of the supported formats ({', '.join(parser_names)})")


__all__ = [
    'BaseParser',
    'OeCsvParser',
    'HtmlParser',
    'get_parser',
    'parse_event_data',
    'PARSERS',
    'DEFAULT_PARSER_ORDER',
]
