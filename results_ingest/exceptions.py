"""
Exceptions raised while reading results files.
"""


class ResultsIngestError(Exception):
    """Base class for all errors raised by the ingestion pipeline."""


class WrongFileFormat(ResultsIngestError):
    """
    The data does not resemble the format the parser reads.

    Callers should try another parser.
    """


class InvalidData(ResultsIngestError):
    """
    The data looks like the format the parser reads, but is broken in a way
    that means no event can be returned.
    """
