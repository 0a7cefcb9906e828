"""Mark calculation for one subject, with the optional 40/60 conversion."""
import math
from collections import namedtuple

MID_TERM_WEIGHT = 40
END_TERM_WEIGHT = 60

Marks = namedtuple('Marks', ['mid_term_marks', 'end_term_marks', 'total_marks'])


def round_half_up(value):
    """Round to the nearest integer, halves going up (12.5 -> 13)."""
    return int(math.floor(value + 0.5))


def _scale(score, weight):
    return round_half_up(score / 100 * weight)


def calculate_marks(grouped, is_end_of_term, enable_conversion=False):
    """Return the ``Marks`` shown for one grouped subject.

    Outside end-of-term reports the total is the first available score
    (regular, then mid, then end). On end-of-term reports the stored scores
    are out of 100; with conversion on they are rescaled to 40 and 60 and
    added up, without it the higher of the two wins.
    """
    mid = grouped.mid_term_score
    end = grouped.end_term_score
    regular = grouped.regular_score

    if not is_end_of_term:
        raw = next((s for s in (regular, mid, end) if s is not None), 0)
        marks = round_half_up(raw)
        return Marks(marks, 0, marks)

    mid_marks = end_marks = 0
    if enable_conversion:
        if mid is not None and end is not None:
            mid_marks = _scale(mid, MID_TERM_WEIGHT)
            end_marks = _scale(end, END_TERM_WEIGHT)
        elif mid is not None:
            mid_marks = _scale(mid, MID_TERM_WEIGHT)
        elif end is not None:
            end_marks = _scale(end, END_TERM_WEIGHT)
        elif regular is not None:
            mid_marks = _scale(regular, MID_TERM_WEIGHT)
            end_marks = _scale(regular, END_TERM_WEIGHT)
        return Marks(mid_marks, end_marks, mid_marks + end_marks)

    if mid is not None:
        mid_marks = round_half_up(mid)
    if end is not None:
        end_marks = round_half_up(end)
    if mid is None and end is None and regular is not None:
        mid_marks = round_half_up(regular)
    return Marks(mid_marks, end_marks, max(mid_marks, end_marks))


def is_end_of_term_report(result_type_filter, core_rows):
    """An end-of-term layout is used when the filter or any core row says so."""
    if 'end' in (result_type_filter or '').lower():
        return True
    return any('end' in (row.result_type or '').lower() for row in core_rows)
