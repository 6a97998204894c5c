"""
Maps the raw status signals found in results files onto ResultStatus.
"""

import re
from typing import Optional

from .model import ResultStatus

# OE classifier codes.  '0' (OK) is handled separately as it only matters
# when times are missing.
CLASSIFIER_OK = '0'
CLASSIFIER_STATUSES = {
    '1': ResultStatus.NON_STARTER,
    '2': ResultStatus.NON_FINISHER,
    '4': ResultStatus.DISQUALIFIED,
    '5': ResultStatus.OVER_MAX_TIME,
}

LEADING_INTEGER_REGEXP = re.compile(r'^\s*[+-]?\d')


def is_placing_non_numeric(placing: str) -> bool:
    """Whether a placing is present but does not start with a number, e.g. 'mp' or 'n/c'."""
    return placing != "" and LEADING_INTEGER_REGEXP.match(placing) is None


def strip_placing_suffix(name: str, placing: str) -> str:
    """
    Remove a non-numeric placing from the end of a name.

    Some exports append status text such as 'mp' or 'n/c' to the name as well
    as putting it in the placing column.
    """
    if is_placing_non_numeric(placing) and name.endswith(placing):
        return name[:len(name) - len(placing)].strip()
    return name


def resolve_status(cum_times: list, competitive: bool = True, classifier: Optional[str] = None) -> ResultStatus:
    """
    Work out the status of a result.

    Args:
        cum_times: Cumulative times including the leading zero; None for
            missing times.
        competitive: False if the competitor ran non-competitively.
        classifier: OE classifier code, or None/blank if the format has none.

    Returns:
        The status, with explicit classifiers taking precedence over anything
        inferred from the times.
    """
    if classifier:
        if classifier == CLASSIFIER_OK and None in cum_times and cum_times[-1] is not None:
            return ResultStatus.OK_DESPITE_MISSING_TIMES
        if classifier in CLASSIFIER_STATUSES:
            return CLASSIFIER_STATUSES[classifier]
    elif all(time is None for time in cum_times[1:]):
        return ResultStatus.NON_STARTER

    # Only a completed run can be non-competitive; a mispunch stays OK but
    # without a total time.
    if not competitive and None not in cum_times:
        return ResultStatus.NON_COMPETITIVE

    return ResultStatus.OK
