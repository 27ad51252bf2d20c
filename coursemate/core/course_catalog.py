"""Static course catalog standing in for the host platform's course data."""

from __future__ import annotations

import logging

from coursemate.core.models import Course, CourseContext, Topic, Unit

logger = logging.getLogger(__name__)

_DEFAULT_COURSES: tuple[Course, ...] = (
    Course(
        course_id="BIO101",
        course_name="Introduction to Biology",
        units=(
            Unit(unit_id="unit1", name="Cell Structure"),
            Unit(unit_id="unit2", name="Photosynthesis"),
        ),
        topics=(
            Topic(
                name="Cell Membrane",
                description="The protective barrier around cells that regulates what enters and exits.",
            ),
            Topic(
                name="Nucleus",
                description="The control center of the cell containing genetic material.",
            ),
            Topic(
                name="Mitochondria",
                description="The powerhouse of the cell that produces energy through cellular respiration.",
            ),
            Topic(
                name="Chloroplasts",
                description="Organelles in plant cells where photosynthesis converts light into chemical energy.",
            ),
            Topic(
                name="Ribosomes",
                description="Small structures that assemble proteins from amino acids.",
            ),
        ),
    ),
)


class CourseCatalog:
    """Resolves course and unit identifiers to a course context.

    Lookups never fail: unknown courses fall back to the default (first)
    course and unknown units fall back to the course's first unit.
    """

    def __init__(self, courses: tuple[Course, ...] | list[Course] = _DEFAULT_COURSES) -> None:
        if not courses:
            raise ValueError("Catalog must contain at least one course.")
        for course in courses:
            if not course.units:
                raise ValueError(f"Course {course.course_id} must define at least one unit.")
        self._courses = {course.course_id: course for course in courses}
        self._default_course_id = courses[0].course_id

    def courses(self) -> list[Course]:
        return list(self._courses.values())

    def get_course(self, course_id: str | None = None) -> Course:
        course = self._courses.get(course_id or "")
        if course is None:
            if course_id:
                logger.debug("Unknown course %r, using %s", course_id, self._default_course_id)
            course = self._courses[self._default_course_id]
        return course

    def get_context(self, course_id: str | None = None, unit_id: str | None = None) -> CourseContext:
        course = self.get_course(course_id)
        unit = next((u for u in course.units if u.unit_id == unit_id), course.units[0])
        return CourseContext(
            course_id=course.course_id,
            course_name=course.course_name,
            unit_id=unit.unit_id,
            current_unit_name=unit.name,
            topics=course.topics,
        )
