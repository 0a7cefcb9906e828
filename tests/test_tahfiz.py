import pytest
from werkzeug.datastructures import MultiDict

from reportcards.reporting.tahfiz import (
    TahfizFilters, build_tahfiz_report, normalize_tahfiz_student, rate, tahfiz_grade,
    tahfiz_metrics, tahfiz_report_to_dict
)


def tahfiz_raw(**overrides):
    raw = {
        "student_id": 1,
        "first_name": "Yusuf",
        "last_name": "Kato",
        "class_id": 5,
        "class_name": "Tahfiz A",
        "subject_id": 9,
        "group_name": "Juz Amma",
        "avg_retention_score": "80",
        "avg_marks": 70,
        "eval_tajweed_score": 65,
        "eval_discipline_score": 92,
        "portions_completed": 3,
        "total_portions_assigned": 4,
        "present_days": 18,
        "total_attendance_records": 20,
    }
    raw.update(overrides)
    return raw


def test_rate_guards_zero_denominator():
    assert rate(5, 0) == 0.0
    assert rate(1, 4) == 25.0


@pytest.mark.parametrize("score, grade", [
    (90, "Excellent"), (80, "Very Good"), (70, "Good"), (60, "Satisfactory"),
    (50, "Fair"), (49.9, "Needs Improvement"),
])
def test_tahfiz_grades(score, grade):
    assert tahfiz_grade(score) == grade


def test_weighted_overall_score():
    standing = tahfiz_metrics(normalize_tahfiz_student(tahfiz_raw()))
    # 80*0.4 + 70*0.3 + 75*0.2 + 90*0.1
    assert standing.overall_score == pytest.approx(77.0)
    assert standing.completion_rate == pytest.approx(75.0)
    assert standing.attendance_rate == pytest.approx(90.0)
    assert standing.grade == "Good"
    assert standing.color == "#3B82F6"
    assert standing.discipline_comment == "Excellent discipline and behavior."


def test_retention_falls_back_to_evaluation_score():
    student = normalize_tahfiz_student(tahfiz_raw(avg_retention_score=None, eval_retention_score=60))
    assert tahfiz_metrics(student).retention_score == 60


def test_missing_portions_and_attendance_count_as_zero():
    student = normalize_tahfiz_student(tahfiz_raw(total_portions_assigned=0, total_attendance_records=None))
    standing = tahfiz_metrics(student)
    assert standing.completion_rate == 0.0
    assert standing.attendance_rate == 0.0


def test_students_are_ranked_per_class():
    report = build_tahfiz_report([
        tahfiz_raw(student_id=1, last_name="Kato", avg_marks=40),
        tahfiz_raw(student_id=2, last_name="Ssali", avg_marks=95),
        tahfiz_raw(student_id=3, class_name=None),
        {"student_id": None},
    ])
    assert [c.class_name for c in report] == ["Tahfiz A", "Unknown Class"]
    first = report[0]
    assert [s.student.student_id for s in first.standings] == [2, 1]
    assert [s.position for s in first.standings] == [1, 2]
    assert first.standings[0].total_in_class == 2


def test_filters_narrow_the_report():
    raws = [
        tahfiz_raw(student_id=1, group_name="Juz Amma"),
        tahfiz_raw(student_id=2, first_name="Aisha", group_name="Juz Tabarak"),
        tahfiz_raw(student_id=3, class_name="Tahfiz B"),
    ]
    filters = TahfizFilters.from_args(MultiDict({"group": "tabarak"}))
    [tahfiz_class] = build_tahfiz_report(raws, filters)
    assert [s.student.first_name for s in tahfiz_class.standings] == ["Aisha"]

    [tahfiz_class] = build_tahfiz_report(raws, TahfizFilters(class_name="tahfiz b"))
    assert tahfiz_class.class_name == "Tahfiz B"


def test_report_to_dict():
    payload = tahfiz_report_to_dict(build_tahfiz_report([tahfiz_raw()]))
    assert payload[0]["students"][0]["student"]["first_name"] == "Yusuf"
    assert payload[0]["students"][0]["position"] == 1
