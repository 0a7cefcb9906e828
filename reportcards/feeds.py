"""HTTP client for the school backend.

The backend owns students, results, Tahfiz records, teacher initials,
the next-term date and promotions; this module only moves JSON around.
Read calls raise ``FeedError``; write calls are best effort and only log.
"""
import logging

import requests
from flask import current_app

from reportcards.reporting.errors import FeedError
from reportcards.reporting.rows import parse_feed_payload

logger = logging.getLogger(__name__)


def api_url(path):
    base = current_app.config['RESULTS_API_BASE'].rstrip('/')
    return f"{base}/{path.lstrip('/')}"


def _get_json(path, params=None):
    url = api_url(path)
    try:
        response = requests.get(url, params=params, timeout=current_app.config['FEED_TIMEOUT'])
        response.raise_for_status()
        return response.json()
    except requests.RequestException as e:
        raise FeedError(f"Request to {url} failed: {e}", url=url) from e
    except ValueError as e:
        raise FeedError(f"Invalid JSON from {url}: {e}", url=url) from e


def _post_json(path, payload):
    url = api_url(path)
    try:
        response = requests.post(url, json=payload, timeout=current_app.config['FEED_TIMEOUT'])
        response.raise_for_status()
        return True
    except requests.RequestException as e:
        logger.error(f"POST {url} failed: {e}")
        return False


def fetch_results_feed(params=None):
    """Return ``(students, results)`` from the results feed."""
    payload = _get_json('reports/list', params)
    return parse_feed_payload(payload)


def fetch_tahfiz_feed(params=None):
    payload = _get_json('tahfiz/reports', params)
    if not isinstance(payload, dict) or not payload.get('success'):
        message = payload.get('message') if isinstance(payload, dict) else None
        logger.error(f"Tahfiz feed returned no data: {message or 'unexpected payload'}")
        return []
    return payload.get('data') or []


def fetch_promotions(term_id, class_id):
    """Promotion candidates for a class, or None when the service has nothing."""
    params = {
        'school_id': current_app.config['SCHOOL_ID'],
        'term_id': term_id,
        'class_id': class_id,
    }
    payload = _get_json('academics/promotions', params)
    if isinstance(payload, dict) and payload.get('success'):
        return payload.get('data')
    return None


def promote_students(student_ids, new_class_id, remarks='Promoted from 3rd term reports'):
    url = api_url('academics/promotions')
    payload = {'studentIds': student_ids, 'newClassId': new_class_id, 'remarks': remarks}
    try:
        response = requests.post(url, json=payload, timeout=current_app.config['FEED_TIMEOUT'])
        response.raise_for_status()
        result = response.json()
    except (requests.RequestException, ValueError) as e:
        raise FeedError(f"Promotion request failed: {e}", url=url) from e
    if not result.get('success'):
        raise FeedError(f"Promotion rejected: {result.get('message', 'unknown error')}", url=url)
    return result


def save_teacher_initials(class_id, subject_id, initials):
    return _post_json('teacher-initials', {
        'classId': class_id,
        'subjectId': subject_id,
        'initials': initials,
    })


def save_next_term_begins(date_text):
    return _post_json('next-term', {'nextTermBegins': date_text})
