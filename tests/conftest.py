import pytest

from reportcards import create_app
from reportcards.config import TestConfig


@pytest.fixture
def app():
    return create_app(TestConfig)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_row():
    """Factory for raw feed rows shaped like the results API output."""
    def factory(**overrides):
        row = {
            "student_id": 1,
            "admission_no": "ADM001",
            "first_name": "Amina",
            "last_name": "Nakato",
            "gender": "F",
            "class_id": 10,
            "class_name": "P5",
            "subject_id": 100,
            "subject_name": "Mathematics",
            "subject_type": "core",
            "teacher_name": "John Okello",
            "score": 75,
            "result_type_name": "Mid Term",
            "term": "Term 1",
        }
        row.update(overrides)
        return row
    return factory
