"""Ingestion of raw feed rows.

The results feed is loosely typed: the same concept may arrive under
different keys (``term`` / ``term_name``, ``result_type_name`` /
``results_type``) and scores may be numbers, numeric strings or nulls.
Everything downstream works on the immutable ``ResultRow`` produced here.
"""
import logging
import math
from collections import namedtuple

logger = logging.getLogger(__name__)

RESULT_ROW_FIELDS = [
    'student_id', 'admission_no', 'first_name', 'last_name', 'gender',
    'photo_url', 'group_name', 'class_id', 'class_name',
    'subject_id', 'subject_name', 'subject_type', 'teacher_name',
    'teacher_initials', 'score', 'result_type', 'term',
    'mid_term_score', 'end_term_score',
    'class_teacher_comment', 'dos_comment', 'headteacher_comment',
]

ResultRow = namedtuple('ResultRow', RESULT_ROW_FIELDS)

# canonical field -> keys accepted from the feed, first non-empty wins
FIELD_ALIASES = {
    'result_type': ('result_type_name', 'results_type'),
    'term': ('term', 'term_name'),
    'photo_url': ('photo_url', 'photo'),
}


def to_number(value):
    """Parse a feed value into a float, or None unless it is a finite number."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


def _first_present(raw, keys):
    for key in keys:
        value = raw.get(key)
        if value not in (None, ''):
            return value
    return None


def _text(value):
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def normalize_result_row(raw):
    """Map one feed dict onto a ``ResultRow``.

    Returns None for rows that cannot take part in a report: no student id,
    no class name, or a score that is not a finite number of at least 0.
    """
    if not isinstance(raw, dict):
        return None

    student_id = raw.get('student_id')
    class_name = _text(raw.get('class_name'))
    score = to_number(raw.get('score'))
    if student_id in (None, '') or not class_name or score is None or score < 0:
        return None

    subject_type = (_text(raw.get('subject_type')) or 'core').lower()

    return ResultRow(
        student_id=student_id,
        admission_no=_text(raw.get('admission_no')),
        first_name=_text(raw.get('first_name')) or '',
        last_name=_text(raw.get('last_name')) or '',
        gender=_text(raw.get('gender')),
        photo_url=_text(_first_present(raw, FIELD_ALIASES['photo_url'])),
        group_name=_text(raw.get('group_name')),
        class_id=raw.get('class_id'),
        class_name=class_name,
        subject_id=raw.get('subject_id'),
        subject_name=_text(raw.get('subject_name')),
        subject_type=subject_type,
        teacher_name=_text(raw.get('teacher_name')),
        teacher_initials=_text(raw.get('teacher_initials')),
        score=score,
        result_type=_text(_first_present(raw, FIELD_ALIASES['result_type'])) or '',
        term=_text(_first_present(raw, FIELD_ALIASES['term'])) or '',
        mid_term_score=to_number(raw.get('mid_term_score')),
        end_term_score=to_number(raw.get('end_term_score')),
        class_teacher_comment=_text(raw.get('class_teacher_comment')),
        dos_comment=_text(raw.get('dos_comment')),
        headteacher_comment=_text(raw.get('headteacher_comment')),
    )


def row_identity(row):
    """Key used to spot the same assessment delivered twice by the feed."""
    return (
        str(row.student_id),
        str(row.subject_id),
        row.result_type,
        row.term or 'no_term',
    )


def normalize_result_rows(raws):
    """Normalize a list of feed dicts, dropping malformed rows and duplicates."""
    rows = []
    seen = set()
    dropped = 0
    for raw in raws or []:
        row = normalize_result_row(raw)
        if row is None:
            dropped += 1
            continue
        key = row_identity(row)
        if key in seen:
            continue
        seen.add(key)
        rows.append(row)

    if dropped:
        logger.debug("Skipped %d malformed result row(s)", dropped)
    return rows


def parse_feed_payload(payload):
    """Split a results feed payload into ``(students, results)``.

    The feed answers either ``{"students": [...], "results": [...]}``,
    ``{"data": [...]}`` or a bare list of results.
    """
    if isinstance(payload, list):
        return [], payload
    if not isinstance(payload, dict):
        return [], []

    students = payload.get('students') or []
    results = payload.get('results') or payload.get('data') or []
    if not isinstance(results, list):
        results = []
    if not isinstance(students, list):
        students = []
    return students, results
