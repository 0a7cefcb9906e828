"""Tahfiz (Quran memorization) progress scoring and class ranking."""
from collections import namedtuple, OrderedDict

import numpy as np

from reportcards.reporting.grading import band_for, discipline_comment
from reportcards.reporting.grouping import sort_by_surname
from reportcards.reporting.rows import to_number

# retention, marks, completion rate, attendance rate
TAHFIZ_WEIGHTS = np.array([0.4, 0.3, 0.2, 0.1])

TAHFIZ_GRADES = [
    (90, 'Excellent'),
    (80, 'Very Good'),
    (70, 'Good'),
    (60, 'Satisfactory'),
    (50, 'Fair'),
]
TAHFIZ_GRADE_FLOOR = 'Needs Improvement'

PERFORMANCE_COLORS = [
    (80, '#10B981'),
    (70, '#3B82F6'),
    (60, '#F59E0B'),
]
PERFORMANCE_COLOR_FLOOR = '#EF4444'

TEACHER_COMMENTS = [
    (80, 'Excellent Tahfiz progress! Keep up the outstanding work.'),
    (70, 'Good progress in memorization. Continue with dedication.'),
    (60, 'Satisfactory performance. More focus needed on retention.'),
]
TEACHER_COMMENT_FLOOR = 'Needs significant improvement. Please see teacher for guidance.'

UNKNOWN_CLASS = 'Unknown Class'

TEXT_FIELDS = [
    'admission_no', 'first_name', 'last_name', 'gender', 'photo_url',
    'stream_name', 'group_name', 'teacher_name', 'teacher_initials',
    'books_studied', 'term_name', 'academic_year',
]
SCORE_FIELDS = [
    'avg_retention_score', 'eval_retention_score', 'avg_marks',
    'eval_tajweed_score', 'eval_voice_score', 'eval_discipline_score',
]
COUNT_FIELDS = [
    'total_records', 'completed_portions', 'presentations_made',
    'total_attendance_records', 'present_days', 'total_portions_assigned',
    'portions_completed', 'portions_in_progress',
]

TahfizStudent = namedtuple(
    'TahfizStudent',
    ['student_id', 'class_id', 'class_name', 'subject_id'] + TEXT_FIELDS + SCORE_FIELDS + COUNT_FIELDS,
)

TahfizStanding = namedtuple('TahfizStanding', [
    'student', 'retention_score', 'marks_score', 'tajweed_score',
    'completion_rate', 'attendance_rate', 'overall_score', 'grade', 'color',
    'teacher_comment', 'discipline_comment', 'position', 'total_in_class',
])

TahfizClass = namedtuple('TahfizClass', ['class_name', 'standings'])


class TahfizFilters(namedtuple('TahfizFilters', ['term', 'group', 'class_name', 'student'])):
    __slots__ = ()

    def __new__(cls, term='', group='', class_name='', student=''):
        return super().__new__(cls, *((v or '').strip() for v in (term, group, class_name, student)))

    @classmethod
    def from_args(cls, args):
        return cls(args.get('term', ''), args.get('group', ''),
                   args.get('class', ''), args.get('student', ''))


def normalize_tahfiz_student(raw):
    if not isinstance(raw, dict) or raw.get('student_id') in (None, ''):
        return None
    values = {
        'student_id': raw.get('student_id'),
        'class_id': raw.get('class_id'),
        'class_name': (str(raw.get('class_name') or '').strip() or UNKNOWN_CLASS),
        'subject_id': raw.get('subject_id'),
    }
    for field in TEXT_FIELDS:
        value = raw.get(field)
        values[field] = str(value).strip() if value not in (None, '') else None
    for field in SCORE_FIELDS:
        values[field] = to_number(raw.get(field))
    for field in COUNT_FIELDS:
        values[field] = int(to_number(raw.get(field)) or 0)
    return TahfizStudent(**values)


def rate(part, whole):
    """Percentage, 0 when there is nothing to divide by."""
    if not whole:
        return 0.0
    return part / whole * 100


def tahfiz_grade(score):
    return band_for(score, TAHFIZ_GRADES, TAHFIZ_GRADE_FLOOR)


def performance_color(score):
    return band_for(score, PERFORMANCE_COLORS, PERFORMANCE_COLOR_FLOOR)


def tahfiz_teacher_comment(overall_score):
    return band_for(overall_score, TEACHER_COMMENTS, TEACHER_COMMENT_FLOOR)


def tahfiz_metrics(student):
    """Weighted overall score: retention 40%, marks 30%, completion 20%, attendance 10%."""
    retention = student.avg_retention_score or student.eval_retention_score or 0
    marks = student.avg_marks or 0
    completion = rate(student.portions_completed, student.total_portions_assigned)
    attendance = rate(student.present_days, student.total_attendance_records)
    overall = float(np.dot(TAHFIZ_WEIGHTS, [retention, marks, completion, attendance]))
    return TahfizStanding(
        student=student,
        retention_score=retention,
        marks_score=marks,
        tajweed_score=student.eval_tajweed_score or 0,
        completion_rate=completion,
        attendance_rate=attendance,
        overall_score=overall,
        grade=tahfiz_grade(overall),
        color=performance_color(overall),
        teacher_comment=tahfiz_teacher_comment(overall),
        discipline_comment=discipline_comment(student.eval_discipline_score or 0),
        position=None,
        total_in_class=None,
    )


def tahfiz_student_matches(student, filters):
    if filters.group:
        if not student.group_name or filters.group.lower() not in student.group_name.lower():
            return False
    if filters.student:
        name = f"{student.first_name or ''} {student.last_name or ''}".lower()
        if filters.student.lower() not in name and str(student.student_id) != filters.student:
            return False
    return True


def build_tahfiz_report(raw_students, filters=None):
    """Group, filter, score and rank Tahfiz students per class."""
    filters = filters or TahfizFilters()
    classes = OrderedDict()
    for raw in raw_students or []:
        student = normalize_tahfiz_student(raw)
        if student is not None:
            classes.setdefault(student.class_name, []).append(student)

    report = []
    for class_name, students in classes.items():
        if filters.class_name and filters.class_name.lower() not in class_name.lower():
            continue
        kept = [s for s in sort_by_surname(students) if tahfiz_student_matches(s, filters)]
        if not kept:
            continue
        standings = sorted((tahfiz_metrics(s) for s in kept),
                           key=lambda standing: -standing.overall_score)
        size = len(standings)
        report.append(TahfizClass(class_name, tuple(
            standing._replace(position=index, total_in_class=size)
            for index, standing in enumerate(standings, start=1)
        )))
    return report


def tahfiz_report_to_dict(report):
    payload = []
    for tahfiz_class in report:
        rows = []
        for standing in tahfiz_class.standings:
            data = standing._asdict()
            data['student'] = standing.student._asdict()
            rows.append(data)
        payload.append({'class_name': tahfiz_class.class_name, 'students': rows})
    return payload
