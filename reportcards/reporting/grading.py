"""Grade scales, grade points, divisions and the remarks printed with them."""
import re
from collections import Counter

# inclusive lower bounds, checked top-down
GRADE_SCALE = [
    (90, 'D1'),
    (80, 'D2'),
    (70, 'C3'),
    (60, 'C4'),
    (50, 'C5'),
    (44, 'C6'),
    (40, 'P7'),
    (34, 'P8'),
]
FAIL_GRADE = 'F9'

NURSERY_GRADES = {
    'D1': 'A', 'D2': 'A',
    'C3': 'B', 'C4': 'B',
    'C5': 'C', 'C6': 'C',
    'P7': 'D', 'P8': 'D',
    'F9': 'E',
}
NURSERY_KEYWORDS = ('nursery', 'baby', 'kindergarten', 'pre', 'reception')
NURSERY_TIE_GRADE = 'C'

GRADE_REMARKS = {
    'D1': 'Excellent results, keep it up.',
    'D2': 'Very good score, but aim at excellency.',
    'C3': 'Satisfactory performance, please work harder.',
    'C4': 'Needs improvement, consider seeking help.',
    'C5': 'Unsatisfactory, please see your teacher.',
    'C6': 'Needs improvement, consider seeking help.',
    'P8': 'Passed, but you can do better.',
    'F9': 'Failed, please see your teacher for guidance.',
}
DEFAULT_REMARK = 'Continue working hard.'

DESCRIPTIVE_GRADES = {
    'D1': 'Profound',
    'D2': 'Excellent',
    'C3': 'Very Good',
    'C4': 'Good',
    'C5': 'Fair',
    'C6': 'Poor',
}
DEFAULT_DESCRIPTIVE_GRADE = 'Weak'

# P7 has never had its own entry and scores like F9. Kept as a named value
# until the points table is confirmed.
P7_GRADE_POINT = 9
DEFAULT_GRADE_POINT = 9
GRADE_POINTS = {
    'D1': 1, 'D2': 2, 'C3': 3, 'C4': 4, 'C5': 5, 'C6': 6,
    'P7': P7_GRADE_POINT,
    'P8': 8, 'F9': 9,
}

DIVISION_SCALE = [
    (12, 'Division 1'),
    (24, 'Division 2'),
    (28, 'Division 3'),
    (32, 'Division 4'),
]
UNGRADED_DIVISION = 'Division U'

DIVISION_COMMENTS = {
    'Division 1': {
        'class_teacher': 'Brilliant!! all my hopes are in you.',
        'dos': 'Outstanding Results, keep focused.',
        'headteacher': 'Great work done, keep it up.',
    },
    'Division 2': {
        'class_teacher': 'Promising results, keep more focused.',
        'dos': 'Very good performance, keep it up.',
        'headteacher': 'You are a first grade material, keep more focused.',
    },
    'Division 3': {
        'class_teacher': 'Improve and make it to the next grade.',
        'dos': 'Good effort, but more work needed.',
        'headteacher': 'You need to be active in discussions.',
    },
    'Division 4': {
        'class_teacher': 'You have to be very active in the discussion groups.',
        'dos': 'More effort is needed from you.',
        'headteacher': 'You are capable of improving, just keep focused.',
    },
    'Division U': {
        'class_teacher': 'More concentration is needed from you in order to perform better.',
        'dos': 'Work very hard to improve your performance.',
        'headteacher': 'Concentrate more on academics for a better performance.',
    },
    'A': {
        'class_teacher': 'Excellent performance! Keep up the great work.',
        'dos': 'Outstanding achievement in all areas.',
        'headteacher': 'Exceptional learner, continue to excel.',
    },
    'B': {
        'class_teacher': 'Very good work, aim for excellence.',
        'dos': 'Good progress, keep working hard.',
        'headteacher': 'Well done, you can achieve even more.',
    },
    'C': {
        'class_teacher': 'Satisfactory progress, more effort needed.',
        'dos': 'Average performance, room for improvement.',
        'headteacher': 'Work harder to improve your performance.',
    },
    'D': {
        'class_teacher': 'Needs more attention and practice.',
        'dos': 'Below average, requires extra support.',
        'headteacher': 'More focus and effort is needed.',
    },
    'E': {
        'class_teacher': 'Requires immediate intervention and support.',
        'dos': 'Needs significant improvement.',
        'headteacher': 'Extra help and attention required.',
    },
}

TAHFIZ_SUBJECT_PATTERN = re.compile(
    r'tajweed|mura|muraaja|muraajah|juzu|juz|voice|pronunciation')

TAHFIZ_SUBJECT_BANDS = [
    (85, 'Profound', 'Excellent, keep it up.'),
    (70, 'Very Good', 'Very good, continue practicing.'),
    (50, 'Fair', 'Unsatisfactory, please see your teacher.'),
]
TAHFIZ_SUBJECT_FLOOR = ('Weak', 'Failed, please see your teacher for guidance.')

DISCIPLINE_COMMENTS = [
    (90, 'Excellent discipline and behavior.'),
    (70, 'Generally disciplined with a few minor issues.'),
    (50, 'Average discipline; improvement needed.'),
]
DISCIPLINE_FLOOR = 'Poor discipline; requires close monitoring.'


def band_for(score, scale, default):
    """First label whose inclusive lower bound the score reaches."""
    for threshold, label in scale:
        if score >= threshold:
            return label
    return default


def is_nursery_class(class_name):
    name = (class_name or '').lower()
    return any(keyword in name for keyword in NURSERY_KEYWORDS)


def to_nursery_grade(grade):
    return NURSERY_GRADES.get(grade, 'E')


def get_grade(score, nursery=False):
    """Grade a 0-100 score on the 9-point scale, or the A-E nursery scale."""
    grade = band_for(score, GRADE_SCALE, FAIL_GRADE)
    if nursery:
        return to_nursery_grade(grade)
    return grade


def comments_for_grade(grade):
    return GRADE_REMARKS.get(grade, DEFAULT_REMARK)


def descriptive_grade(grade):
    return DESCRIPTIVE_GRADES.get(grade, DEFAULT_DESCRIPTIVE_GRADE)


def get_grade_point(grade):
    return GRADE_POINTS.get(grade, DEFAULT_GRADE_POINT)


def get_division(aggregates):
    for ceiling, division in DIVISION_SCALE:
        if aggregates <= ceiling:
            return division
    return UNGRADED_DIVISION


def nursery_overall_grade(grades):
    """Most frequent nursery grade; no grades or a tie gives 'C'."""
    if not grades:
        return NURSERY_TIE_GRADE
    counts = Counter(grades).most_common()
    top_count = counts[0][1]
    leaders = [grade for grade, count in counts if count == top_count]
    if len(leaders) == 1:
        return leaders[0]
    return NURSERY_TIE_GRADE


def comments_by_division(label):
    """Class teacher, DOS and head teacher comments for a division or nursery grade."""
    return DIVISION_COMMENTS.get(label, DIVISION_COMMENTS[UNGRADED_DIVISION])


def is_tahfiz_subject(subject_name):
    key = re.sub(r"[’'`]", '', (subject_name or '').lower())
    return bool(TAHFIZ_SUBJECT_PATTERN.search(key))


def _tahfiz_band(combined):
    for threshold, grade, comment in TAHFIZ_SUBJECT_BANDS:
        if combined >= threshold:
            return grade, comment
    return TAHFIZ_SUBJECT_FLOOR


def tahfiz_descriptive_grade(combined):
    return _tahfiz_band(combined)[0]


def tahfiz_learner_comment(combined):
    return _tahfiz_band(combined)[1]


def discipline_comment(score):
    return band_for(score, DISCIPLINE_COMMENTS, DISCIPLINE_FLOOR)
