"""Class positions.

Positions are always relative to the filtered students of one class and are
recomputed from scratch on every call.
"""
import numpy as np

from reportcards.reporting.filters import has_term_data, result_matches_filters
from reportcards.reporting.marks import round_half_up


def score_student(student):
    """Return the student with total, average and subject count filled in."""
    scores = np.array([row.score for row in student.results], dtype=np.float64)
    total = float(np.sum(scores)) if scores.size else 0.0
    average = round_half_up(total / scores.size) if scores.size else 0
    return student._replace(
        total_marks=total,
        average_marks=average,
        subject_count=int(scores.size),
    )


def ranking_key(student):
    return (
        -(student.total_marks or 0),
        -(student.average_marks or 0),
        (student.last_name or '').casefold(),
    )


def rank_students(students):
    """Order by total desc, then average desc, then surname, and number them."""
    ordered = sorted(students, key=ranking_key)
    size = len(ordered)
    return [s._replace(position=index, total_in_class=size)
            for index, s in enumerate(ordered, start=1)]


def rank_class_groups(groups, filters):
    """Keep the rows matching the filters, then rank each class.

    Students left without rows and classes left without students are
    dropped.
    """
    ranked = []
    for group in groups:
        students = []
        for student in group.students:
            pass_through = not has_term_data(student)
            rows = tuple(row for row in student.results
                         if result_matches_filters(row, filters, pass_through))
            if rows:
                students.append(score_student(student._replace(results=rows)))
        if students:
            ranked.append(group._replace(students=tuple(rank_students(students))))
    return ranked
