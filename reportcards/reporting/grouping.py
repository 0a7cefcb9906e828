"""Grouping of normalized result rows by class, student and subject."""
from collections import namedtuple, OrderedDict

MID_TERM = 'mid'
END_TERM = 'end'
REGULAR = 'regular'

GroupedSubjectResult = namedtuple('GroupedSubjectResult', [
    'subject_key', 'subject_id', 'subject_name', 'teacher_name',
    'teacher_initials', 'mid_term_score', 'end_term_score', 'regular_score',
    'subject_type',
])

Student = namedtuple('Student', [
    'student_id', 'admission_no', 'first_name', 'last_name', 'gender',
    'photo_url', 'class_id', 'class_name', 'group_name', 'results',
    'class_teacher_comment', 'dos_comment', 'headteacher_comment',
    'total_marks', 'average_marks', 'subject_count', 'position',
    'total_in_class',
])
Student.__new__.__defaults__ = (None,) * 5

ClassGroup = namedtuple('ClassGroup', ['class_name', 'students'])


def classify_result_type(result_type):
    """Bucket a free-text result type: 'mid', 'end' or 'regular'."""
    text = (result_type or '').lower()
    if 'mid' in text:
        return MID_TERM
    if 'end' in text:
        return END_TERM
    return REGULAR


def subject_key(row):
    if row.subject_id not in (None, ''):
        return str(row.subject_id)
    return row.subject_name


def sort_by_surname(students):
    return sorted(students, key=lambda s: (s.last_name or '').casefold())


def group_results_by_subject(rows):
    """Collapse one student's rows into one entry per subject.

    Explicit ``mid_term_score``/``end_term_score`` side fields on end-term
    and regular rows override the bucket inferred from the row's own score.
    A second pass backfills a missing mid or end value from any row of the
    same subject. Subjects without a name are left out.
    """
    grouped = OrderedDict()

    for row in rows:
        key = subject_key(row)
        if key is None:
            continue

        entry = grouped.get(key)
        if entry is None:
            entry = grouped[key] = {
                'subject_key': key,
                'subject_id': row.subject_id,
                'subject_name': row.subject_name,
                'teacher_name': row.teacher_name,
                'teacher_initials': row.teacher_initials,
                'mid_term_score': None,
                'end_term_score': None,
                'regular_score': None,
                'subject_type': row.subject_type or 'core',
            }
        if not entry['subject_name']:
            entry['subject_name'] = row.subject_name
        if not entry['teacher_initials']:
            entry['teacher_initials'] = row.teacher_initials

        kind = classify_result_type(row.result_type)
        if kind == MID_TERM:
            entry['mid_term_score'] = row.score
            continue

        if kind == END_TERM:
            entry['end_term_score'] = row.score
        else:
            entry['regular_score'] = row.score
        if row.mid_term_score is not None:
            entry['mid_term_score'] = row.mid_term_score
        if row.end_term_score is not None:
            entry['end_term_score'] = row.end_term_score

    # The feed may deliver rows out of order or duplicated
    for key, entry in grouped.items():
        subject_rows = [row for row in rows if subject_key(row) == key]
        if entry['mid_term_score'] is None:
            match = next((r for r in subject_rows
                          if classify_result_type(r.result_type) == MID_TERM), None)
            if match is not None:
                entry['mid_term_score'] = match.score
        if entry['end_term_score'] is None:
            match = next((r for r in subject_rows
                          if 'end' in (r.result_type or '').lower()), None)
            if match is not None:
                entry['end_term_score'] = match.score

    return [GroupedSubjectResult(**entry) for entry in grouped.values()
            if entry['subject_name']]


def split_subjects(rows):
    """Return ``(core_rows, other_rows)``; rows without a type count as core."""
    core, others = [], []
    for row in rows:
        if (row.subject_type or 'core').lower() == 'core':
            core.append(row)
        else:
            others.append(row)
    return core, others


def group_rows_by_class(rows):
    """Build ``ClassGroup`` records from normalized rows.

    Classes keep the order in which they first appear in the feed; students
    inside a class are ordered by surname.
    """
    classes = OrderedDict()
    for row in rows:
        students = classes.setdefault(row.class_name, OrderedDict())
        entry = students.get(row.student_id)
        if entry is None:
            entry = students[row.student_id] = {'first': row, 'results': []}
        entry['results'].append(row)

    groups = []
    for class_name, students in classes.items():
        members = [_student_from_rows(entry['first'], entry['results'])
                   for entry in students.values()]
        groups.append(ClassGroup(class_name, tuple(sort_by_surname(members))))
    return groups


def _student_from_rows(first, results):
    return Student(
        student_id=first.student_id,
        admission_no=first.admission_no,
        first_name=first.first_name,
        last_name=first.last_name,
        gender=first.gender,
        photo_url=first.photo_url,
        class_id=first.class_id,
        class_name=first.class_name,
        group_name=first.group_name,
        results=tuple(results),
        class_teacher_comment=first.class_teacher_comment,
        dos_comment=first.dos_comment,
        headteacher_comment=first.headteacher_comment,
    )
