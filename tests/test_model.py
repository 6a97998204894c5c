"""
Tests for the event model.
"""

import pytest

from results_ingest.exceptions import InvalidData
from results_ingest.model import (
    Competitor,
    Course,
    CourseClass,
    Event,
    Result,
    ResultStatus,
    split_times_from_cum_times,
)


def make_result(cum_times, status=ResultStatus.OK, order=1):
    return Result(order, None, cum_times, Competitor('Test runner', 'ABC'), status)


class TestSplitTimesFromCumTimes:
    """Tests for split_times_from_cum_times."""

    def test_split_times(self):
        assert split_times_from_cum_times([0, 65, 221, 384]) == [65, 156, 163]

    def test_missing_time_gives_two_missing_splits(self):
        """A missing cumulative time leaves the splits either side of it missing."""
        assert split_times_from_cum_times([0, 65, None, 384, 421]) == [65, None, None, 37]

    def test_empty(self):
        with pytest.raises(InvalidData):
            split_times_from_cum_times([])

    def test_no_leading_zero(self):
        with pytest.raises(InvalidData):
            split_times_from_cum_times([65, 221])

    def test_only_zero(self):
        with pytest.raises(InvalidData):
            split_times_from_cum_times([0])


class TestResult:
    """Tests for Result."""

    def test_total_time(self):
        assert make_result([0, 65, 221, 384]).total_time == 384

    def test_missing_time_means_no_total_time(self):
        result = make_result([0, 65, None, 384])
        assert result.total_time is None
        assert not result.completed()

    def test_ok_despite_missing_times_keeps_total_time(self):
        result = make_result([0, 65, None, 384], ResultStatus.OK_DESPITE_MISSING_TIMES)
        assert result.total_time == 384
        assert result.completed()

    @pytest.mark.parametrize('status', [ResultStatus.DISQUALIFIED, ResultStatus.OVER_MAX_TIME])
    def test_not_completed_statuses(self, status):
        """Disqualified and over-max-time results have times but have not completed."""
        result = make_result([0, 65, 221, 384], status)
        assert result.total_time == 384
        assert not result.completed()

    def test_non_competitive_completed(self):
        result = make_result([0, 65, 221, 384], ResultStatus.NON_COMPETITIVE)
        assert result.is_non_competitive
        assert result.completed()

    def test_has_any_times(self):
        assert make_result([0, None, 221, None]).has_any_times()
        assert not make_result([0, None, None, None]).has_any_times()

    def test_order_must_be_a_number(self):
        with pytest.raises(InvalidData):
            make_result([0, 65], order='1')

    def test_split_times(self):
        assert make_result([0, 65, 221, 384]).original_split_times == [65, 156, 163]


class TestEventToDict:
    """Tests for converting an event to plain data."""

    def test_to_dict(self):
        result = make_result([0, 65, 221, 384])
        course_class = CourseClass('M21', 2, [result])
        course = Course('Course 1', [course_class], 4.5, 140, ['151', '152'])
        course_class.set_course(course)

        data = Event([course_class], [course], ['A warning']).to_dict()

        assert data['warnings'] == ['A warning']
        assert data['courses'] == [{
            'name': 'Course 1', 'length': 4.5, 'climb': 140, 'controls': ['151', '152'], 'classes': ['M21'],
        }]
        class_data = data['classes'][0]
        assert class_data['name'] == 'M21'
        assert class_data['course'] == 'Course 1'
        assert class_data['results'][0]['status'] == 'ok'
        assert class_data['results'][0]['class_name'] == 'M21'
        assert class_data['results'][0]['total_time'] == 384
        assert class_data['results'][0]['cum_times'] == [0, 65, 221, 384]
