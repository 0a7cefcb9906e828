"""Report filters: term, result type, class and free-text student search."""
from collections import namedtuple

FILTER_ARGS = {
    'term': 'term',
    'result_type': 'result_type',
    'class_name': 'class_id',
    'student': 'student',
}


class ReportFilters(namedtuple('ReportFilters', list(FILTER_ARGS))):
    """Active filters; empty strings mean "no filter"."""
    __slots__ = ()

    def __new__(cls, term='', result_type='', class_name='', student=''):
        return super().__new__(
            cls,
            (term or '').strip(),
            (result_type or '').strip(),
            (class_name or '').strip(),
            (student or '').strip(),
        )

    @classmethod
    def from_args(cls, args):
        return cls(**{field: args.get(arg, '') for field, arg in FILTER_ARGS.items()})

    @property
    def wants_end_of_term(self):
        return 'end' in self.result_type.lower()


def has_term_data(student):
    return any(row.term for row in student.results)


def matches_student_search(student, search):
    if not search:
        return True
    name = f"{student.first_name} {student.last_name}".lower()
    return search.lower() in name or str(student.student_id) == search


def student_matches_filters(student, filters):
    """True when the student satisfies every active filter.

    A student whose rows carry no term at all is let through the term
    filter. For an end-of-term filter any mid or end row is enough, since
    end-of-term reports print both components.
    """
    if not student.results:
        return False

    if filters.term and has_term_data(student):
        wanted = filters.term.lower()
        if not any(row.term.lower() == wanted for row in student.results):
            return False

    if filters.result_type:
        types = [row.result_type.lower() for row in student.results]
        if filters.wants_end_of_term:
            if not any('end' in t or 'mid' in t for t in types):
                return False
        elif filters.result_type.lower() not in types:
            return False

    return matches_student_search(student, filters.student)


def result_matches_filters(row, filters, term_pass_through=False):
    """Row-level counterpart of ``student_matches_filters``."""
    if filters.result_type:
        result_type = row.result_type.lower()
        if filters.wants_end_of_term:
            if 'mid' not in result_type and 'end' not in result_type:
                return False
        elif result_type != filters.result_type.lower():
            return False

    if filters.term and not term_pass_through:
        if row.term.lower() != filters.term.lower():
            return False
    return True


def matches_class(group, class_filter):
    wanted = class_filter.lower()
    if str(group.class_name).lower() == wanted:
        return True
    return any(str(s.class_name).lower() == wanted for s in group.students)


def filter_class_groups(groups, filters):
    """Apply the filters to class groups, dropping classes left empty."""
    filtered = []
    for group in groups:
        if filters.class_name and not matches_class(group, filters.class_name):
            continue
        students = tuple(s for s in group.students if student_matches_filters(s, filters))
        if students:
            filtered.append(group._replace(students=students))
    return filtered
