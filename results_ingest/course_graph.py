"""
Resolves the many-to-many relation between class names and course names
into Course objects.

One course is commonly run by several classes, but one class can also be
split over several courses (e.g. M21E on courses 1A and 1B), and several
classes over several courses (M20E and M18E on courses 3 and 3B).  Think of
the bipartite graph with classes on one side and courses on the other: each
connected component becomes one Course.
"""

from collections import deque
from typing import Optional
import logging

from .model import Course, CourseClass

logger = logging.getLogger(__name__)


class CourseDetails:
    """Length, climb and controls of a course, as read from its first result."""

    def __init__(self, length: Optional[float], climb: Optional[int], controls: list[str]):
        self.length = length
        self.climb = climb
        self.controls = controls


class CourseComponent:
    """Course names and class names that are all linked to one another."""

    def __init__(self, course_names: list[str], class_names: list[str]):
        self.course_names = course_names
        self.class_names = class_names

    def __repr__(self) -> str:
        return f"CourseComponent(course_names={self.course_names!r}, class_names={self.class_names!r})"


def resolve_components(class_course_pairs: list[tuple[str, str]]) -> list[CourseComponent]:
    """
    Split the (class name, course name) pairs into connected components.

    Components come out in the order their first course was seen, and the
    names within each component are also in first-seen order.
    """
    class_ids: dict[str, int] = {}
    course_ids: dict[str, int] = {}
    class_to_courses: list[list[int]] = []
    course_to_classes: list[list[int]] = []

    for class_name, course_name in class_course_pairs:
        if class_name not in class_ids:
            class_ids[class_name] = len(class_ids)
            class_to_courses.append([])
        if course_name not in course_ids:
            course_ids[course_name] = len(course_ids)
            course_to_classes.append([])

        class_id = class_ids[class_name]
        course_id = course_ids[course_name]
        if course_id not in class_to_courses[class_id]:
            class_to_courses[class_id].append(course_id)
            course_to_classes[course_id].append(class_id)

    class_names = list(class_ids)
    course_names = list(course_ids)
    seen_classes = [False] * len(class_names)
    seen_courses = [False] * len(course_names)

    components = []
    for seed_id in range(len(course_names)):
        if seen_courses[seed_id]:
            continue

        seen_courses[seed_id] = True
        courses_to_do = deque([seed_id])
        classes_to_do = deque()
        related_course_ids = []
        related_class_ids = []

        while courses_to_do or classes_to_do:
            while courses_to_do:
                course_id = courses_to_do.popleft()
                related_course_ids.append(course_id)
                for class_id in course_to_classes[course_id]:
                    if not seen_classes[class_id]:
                        seen_classes[class_id] = True
                        classes_to_do.append(class_id)

            while classes_to_do:
                class_id = classes_to_do.popleft()
                related_class_ids.append(class_id)
                for course_id in class_to_courses[class_id]:
                    if not seen_courses[course_id]:
                        seen_courses[course_id] = True
                        courses_to_do.append(course_id)

        components.append(CourseComponent(
            [course_names[course_id] for course_id in sorted(related_course_ids)],
            [class_names[class_id] for class_id in sorted(related_class_ids)],
        ))

    return components


def build_courses(
    class_course_pairs: list[tuple[str, str]],
    classes: list[CourseClass],
    course_details: dict[str, CourseDetails],
    warnings: list[str]
) -> list[Course]:
    """
    Create a Course for each connected group of classes and courses, and link
    each CourseClass back to its Course.

    The Course takes its name and details from the first course name seen in
    its group.  A group whose classes disagree on the number of controls is
    kept, but reported in `warnings`.
    """
    classes_by_name = {course_class.name: course_class for course_class in classes}

    courses = []
    for component in resolve_components(class_course_pairs):
        course_name = component.course_names[0]
        details = course_details[course_name]
        classes_for_course = [classes_by_name[name] for name in component.class_names]

        course = Course(course_name, classes_for_course, details.length, details.climb, details.controls)
        for course_class in classes_for_course:
            course_class.set_course(course)

        control_counts = {course_class.num_controls for course_class in classes_for_course}
        if len(control_counts) > 1:
            counts = ', '.join(f"{c.name}: {c.num_controls}" for c in classes_for_course)
            message = f"Classes on course '{course_name}' have different numbers of controls ({counts})"
            logger.warning(message)
            warnings.append(message)

        if len(component.course_names) > 1:
            logger.debug(f"Combined courses {component.course_names} into course '{course_name}'")

        courses.append(course)

    return courses
