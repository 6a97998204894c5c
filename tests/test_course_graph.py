"""
Tests for grouping classes and courses into Course objects.
"""

from results_ingest.course_graph import CourseDetails, build_courses, resolve_components
from results_ingest.model import CourseClass


def names(components):
    return [(component.course_names, component.class_names) for component in components]


# =============================================================================
# Connected components
# =============================================================================

class TestResolveComponents:
    """Tests for splitting class/course pairs into connected groups."""

    def test_no_pairs(self):
        assert resolve_components([]) == []

    def test_one_class_one_course(self):
        assert names(resolve_components([('A', 'Course 1')])) == [(['Course 1'], ['A'])]

    def test_two_classes_on_one_course(self):
        components = resolve_components([('A', 'Course 1'), ('B', 'Course 1')])
        assert names(components) == [(['Course 1'], ['A', 'B'])]

    def test_separate_courses(self):
        components = resolve_components([('A', 'Course 1'), ('B', 'Course 2')])
        assert names(components) == [(['Course 1'], ['A']), (['Course 2'], ['B'])]

    def test_one_class_on_two_courses(self):
        """A class split over two courses joins them into one."""
        components = resolve_components([('A', 'Course 1'), ('A', 'Course 2'), ('B', 'Course 2')])
        assert names(components) == [(['Course 1', 'Course 2'], ['A', 'B'])]

    def test_chain_of_links(self):
        """Courses linked only through another course still end up together."""
        pairs = [('A', 'Course 1'), ('B', 'Course 2'), ('C', 'Course 3'), ('B', 'Course 3'), ('A', 'Course 3')]
        assert names(resolve_components(pairs)) == [(['Course 1', 'Course 2', 'Course 3'], ['A', 'B', 'C'])]

    def test_components_in_first_seen_order(self):
        pairs = [('B', 'Course 2'), ('A', 'Course 1'), ('C', 'Course 2')]
        assert names(resolve_components(pairs)) == [(['Course 2'], ['B', 'C']), (['Course 1'], ['A'])]

    def test_repeated_pairs(self):
        pairs = [('A', 'Course 1'), ('A', 'Course 1'), ('A', 'Course 1')]
        assert names(resolve_components(pairs)) == [(['Course 1'], ['A'])]

    def test_every_name_in_exactly_one_component(self):
        pairs = [('A', 'X'), ('B', 'Y'), ('C', 'X'), ('D', 'Z'), ('B', 'Z'), ('E', 'W')]
        components = resolve_components(pairs)

        all_courses = [name for component in components for name in component.course_names]
        all_classes = [name for component in components for name in component.class_names]
        assert sorted(all_courses) == ['W', 'X', 'Y', 'Z']
        assert sorted(all_classes) == ['A', 'B', 'C', 'D', 'E']


# =============================================================================
# Building courses
# =============================================================================

class TestBuildCourses:
    """Tests for turning components into linked Course objects."""

    def setup_method(self):
        self.details = {
            'Course 1': CourseDetails(2.7, 35, ['208', '227', '212']),
            'Course 2': CourseDetails(4.1, 140, ['208', '222', '219', '212']),
        }

    def test_links_classes_and_courses(self):
        class_a = CourseClass('A', 3, [])
        class_b = CourseClass('B', 4, [])
        warnings = []
        courses = build_courses([('A', 'Course 1'), ('B', 'Course 2')], [class_a, class_b], self.details, warnings)

        assert [course.name for course in courses] == ['Course 1', 'Course 2']
        assert courses[0].classes == [class_a]
        assert courses[1].classes == [class_b]
        assert class_a.course is courses[0]
        assert class_b.course is courses[1]
        assert courses[1].length == 4.1
        assert courses[1].climb == 140
        assert courses[1].controls == ['208', '222', '219', '212']
        assert warnings == []

    def test_joined_courses_named_after_first(self):
        class_a = CourseClass('A', 3, [])
        class_b = CourseClass('B', 3, [])
        courses = build_courses(
            [('A', 'Course 1'), ('A', 'Course 2'), ('B', 'Course 2')],
            [class_a, class_b],
            self.details,
            []
        )

        assert len(courses) == 1
        assert courses[0].name == 'Course 1'
        assert courses[0].controls == ['208', '227', '212']
        assert courses[0].classes == [class_a, class_b]

    def test_differing_control_counts_warned(self):
        """Classes on one course with different numbers of controls are kept, with a warning."""
        class_a = CourseClass('A', 3, [])
        class_b = CourseClass('B', 4, [])
        warnings = []
        courses = build_courses([('A', 'Course 1'), ('B', 'Course 1')], [class_a, class_b], self.details, warnings)

        assert len(courses) == 1
        assert courses[0].classes == [class_a, class_b]
        assert warnings == ["Classes on course 'Course 1' have different numbers of controls (A: 3, B: 4)"]
