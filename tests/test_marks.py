from reportcards.reporting.grouping import GroupedSubjectResult
from reportcards.reporting.marks import calculate_marks, is_end_of_term_report, round_half_up
from reportcards.reporting.rows import normalize_result_rows


def grouped(mid=None, end=None, regular=None):
    return GroupedSubjectResult("1", 1, "Mathematics", None, None, mid, end, regular, "core")


def test_round_half_up():
    assert round_half_up(12.5) == 13
    assert round_half_up(12.4) == 12
    assert round_half_up(0.5) == 1


def test_conversion_scales_to_forty_and_sixty():
    marks = calculate_marks(grouped(mid=80, end=90), True, enable_conversion=True)
    assert marks == (32, 54, 86)


def test_without_conversion_the_higher_score_wins():
    marks = calculate_marks(grouped(mid=80, end=90), True, enable_conversion=False)
    assert marks == (80, 90, 90)


def test_conversion_with_only_one_component():
    assert calculate_marks(grouped(mid=50), True, True) == (20, 0, 20)
    assert calculate_marks(grouped(end=50), True, True) == (0, 30, 30)


def test_regular_score_fills_end_of_term_layout():
    assert calculate_marks(grouped(regular=70), True, True) == (28, 42, 70)
    assert calculate_marks(grouped(regular=70), True, False) == (70, 0, 70)


def test_mid_term_report_uses_first_available_score():
    assert calculate_marks(grouped(mid=66.5), False) == (67, 0, 67)
    assert calculate_marks(grouped(), False) == (0, 0, 0)


def test_end_of_term_detection(make_row):
    mid_rows = normalize_result_rows([make_row()])
    end_rows = normalize_result_rows([make_row(result_type_name="End of Term")])
    assert is_end_of_term_report("End of Term", mid_rows)
    assert is_end_of_term_report("", end_rows)
    assert not is_end_of_term_report("", mid_rows)
