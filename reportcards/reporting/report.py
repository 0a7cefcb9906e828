"""End-to-end report building.

raw feed rows -> normalized rows -> class groups -> filters -> ranking ->
one ``StudentReport`` per student. Every stage returns fresh records; the
feed dicts passed in are never modified.
"""
from collections import namedtuple

from reportcards.reporting import grading
from reportcards.reporting.filters import filter_class_groups
from reportcards.reporting.grouping import group_results_by_subject, group_rows_by_class, split_subjects
from reportcards.reporting.marks import calculate_marks, is_end_of_term_report, round_half_up
from reportcards.reporting.ranking import rank_class_groups
from reportcards.reporting.rows import normalize_result_rows

DEFAULT_TITLE = 'MID TERM'
DEFAULT_TERM_LABEL = 'Term 1'
MISSING_INITIALS = 'N/A'

ReportOptions = namedtuple('ReportOptions', [
    'enable_conversion', 'initials', 'school_info', 'next_term_begins',
    'class_keyword', 'term_label',
])
ReportOptions.__new__.__defaults__ = (False, None, None, '', '', '')

SubjectLine = namedtuple('SubjectLine', [
    'subject_id', 'subject_name', 'subject_type', 'is_core', 'is_tahfiz',
    'mid_term_marks', 'end_term_marks', 'total_marks', 'grade',
    'descriptive_grade', 'comment', 'initials',
])

StudentReport = namedtuple('StudentReport', [
    'student_id', 'admission_no', 'full_name', 'first_name', 'last_name',
    'gender', 'photo_url', 'class_id', 'class_name', 'group_name',
    'title', 'term_label', 'is_nursery', 'is_end_of_term', 'subjects',
    'total_marks', 'total_mid_term', 'total_end_term', 'average',
    'core_average', 'aggregates', 'division', 'overall_grade',
    'assessment_label', 'tahfiz_score', 'tahfiz_comment', 'comments',
    'position', 'total_in_class', 'next_term_begins',
])

ClassReport = namedtuple('ClassReport', ['class_name', 'students'])


def initials_key(class_name, subject_name):
    return f"{class_name}-{subject_name}"


def initials_from_name(teacher_name):
    parts = (teacher_name or '').split()
    return ''.join(part[0] for part in parts).upper()


def resolve_initials(overrides, class_name, grouped):
    """Initials typed in by staff win over the stored ones."""
    typed = (overrides or {}).get(initials_key(class_name, grouped.subject_name))
    return (typed
            or grouped.teacher_initials
            or initials_from_name(grouped.teacher_name)
            or MISSING_INITIALS)


def _subject_line(grouped, marks, nursery, tahfiz_score, initials):
    grade = grading.get_grade(marks.total_marks, nursery)
    tahfiz = grading.is_tahfiz_subject(grouped.subject_name)
    if tahfiz:
        label = grading.tahfiz_descriptive_grade(tahfiz_score)
        comment = grading.tahfiz_learner_comment(tahfiz_score)
    else:
        label = grading.descriptive_grade(grade)
        comment = grading.comments_for_grade(grade)
    return SubjectLine(
        subject_id=grouped.subject_id,
        subject_name=grouped.subject_name,
        subject_type=grouped.subject_type,
        is_core=(grouped.subject_type or 'core') == 'core',
        is_tahfiz=tahfiz,
        mid_term_marks=marks.mid_term_marks,
        end_term_marks=marks.end_term_marks,
        total_marks=marks.total_marks,
        grade=grade,
        descriptive_grade=label,
        comment=comment,
        initials=initials,
    )


def tahfiz_combined_score(rows):
    return sum(row.score for row in rows if grading.is_tahfiz_subject(row.subject_name))


def build_student_report(student, filters, options=None):
    """Compute everything printed on one student's report card."""
    options = options or ReportOptions()
    core_rows, other_rows = split_subjects(student.results)
    core_grouped = group_results_by_subject(core_rows)
    all_grouped = group_results_by_subject(core_rows + other_rows)

    nursery = grading.is_nursery_class(student.class_name)
    end_of_term = is_end_of_term_report(filters.result_type, core_rows)
    conversion = options.enable_conversion

    def marks_for(grouped):
        return calculate_marks(grouped, end_of_term, conversion)

    tahfiz_score = tahfiz_combined_score(student.results)
    lines = []
    for grouped in all_grouped:
        initials = resolve_initials(options.initials, student.class_name, grouped)
        lines.append(_subject_line(grouped, marks_for(grouped), nursery, tahfiz_score, initials))

    core_totals = [marks_for(g).total_marks for g in core_grouped]
    total_marks = sum(line.total_marks for line in lines)
    core_average = round_half_up(sum(core_totals) / len(core_totals)) if core_totals else 0
    average = round_half_up(total_marks / len(lines)) if lines else 0

    aggregates = None
    division = None
    overall_grade = None
    if nursery:
        overall_grade = grading.nursery_overall_grade(
            [grading.get_grade(total, True) for total in core_totals])
        assessment_label = overall_grade
    else:
        aggregates = sum(grading.get_grade_point(grading.get_grade(total)) for total in core_totals)
        division = grading.get_division(aggregates)
        assessment_label = division

    defaults = grading.comments_by_division(assessment_label)
    comments = {
        'class_teacher': student.class_teacher_comment or defaults['class_teacher'],
        'dos': student.dos_comment or defaults['dos'],
        'headteacher': student.headteacher_comment or defaults['headteacher'],
    }

    first_core = core_rows[0] if core_rows else None
    title = (first_core.result_type if first_core and first_core.result_type else DEFAULT_TITLE)
    term_label = (options.term_label
                  or (first_core.term if first_core else '')
                  or DEFAULT_TERM_LABEL)

    return StudentReport(
        student_id=student.student_id,
        admission_no=student.admission_no,
        full_name=f"{student.first_name} {student.last_name}".strip(),
        first_name=student.first_name,
        last_name=student.last_name,
        gender=student.gender,
        photo_url=student.photo_url,
        class_id=student.class_id,
        class_name=student.class_name,
        group_name=student.group_name,
        title=f"{title.upper()} REPORT",
        term_label=term_label,
        is_nursery=nursery,
        is_end_of_term=end_of_term,
        subjects=tuple(lines),
        total_marks=total_marks,
        total_mid_term=round_half_up(sum(g.mid_term_score or 0 for g in all_grouped)),
        total_end_term=round_half_up(sum(g.end_term_score or 0 for g in all_grouped)),
        average=average,
        core_average=core_average,
        aggregates=aggregates,
        division=division,
        overall_grade=overall_grade,
        assessment_label=assessment_label,
        tahfiz_score=tahfiz_score,
        tahfiz_comment=grading.tahfiz_learner_comment(tahfiz_score),
        comments=comments,
        position=student.position,
        total_in_class=student.total_in_class,
        next_term_begins=options.next_term_begins,
    )


def scope_to_section(groups, keyword):
    if not keyword:
        return groups
    keyword = keyword.lower()
    return [g for g in groups if keyword in g.class_name.lower()]


def build_report(raw_rows, filters, options=None):
    """Run the whole pipeline over raw feed rows; returns ``ClassReport`` records."""
    options = options or ReportOptions()
    rows = normalize_result_rows(raw_rows)
    groups = scope_to_section(group_rows_by_class(rows), options.class_keyword)
    groups = filter_class_groups(groups, filters)
    groups = rank_class_groups(groups, filters)
    return [
        ClassReport(
            class_name=group.class_name,
            students=tuple(build_student_report(s, filters, options) for s in group.students),
        )
        for group in groups
    ]


def filter_choices(raw_rows):
    """Result types and class names offered in the filter drop-downs."""
    rows = normalize_result_rows(raw_rows)
    result_types = sorted({row.result_type for row in rows if row.result_type})
    class_names = sorted({row.class_name for row in rows})
    return {'result_types': result_types, 'class_names': class_names}


def report_to_dict(class_reports):
    """JSON-ready rendering of ``build_report`` output."""
    payload = []
    for class_report in class_reports:
        students = []
        for report in class_report.students:
            data = report._asdict()
            data['subjects'] = [line._asdict() for line in report.subjects]
            data['comments'] = dict(report.comments)
            students.append(data)
        payload.append({'class_name': class_report.class_name, 'students': students})
    return payload
