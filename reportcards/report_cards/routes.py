import mysql.connector
from flask import request, jsonify, current_app

from reportcards.db import fetch_one
from reportcards.report_cards import blueprint

DEFAULT_PHOTO = '/logo.png'

REPORT_CARD_QUERY = """
    SELECT
        rc.id AS report_card_id,
        rc.student_id,
        rc.term_id,
        rc.overall_grade,
        rc.class_teacher_comment,
        rc.headteacher_comment,
        rc.dos_comment,
        s.admission_no,
        s.school_id,
        p.first_name,
        p.last_name,
        p.gender,
        p.photo_url,
        t.name AS term_name
    FROM report_cards rc
    JOIN students s ON rc.student_id = s.id
    JOIN people p ON s.person_id = p.id
    JOIN terms t ON rc.term_id = t.id
    WHERE rc.id = %s
      AND s.school_id = %s
    LIMIT 1
"""


@blueprint.route('/api/report-cards/<int:report_card_id>', methods=['GET'])
def report_card(report_card_id):
    """Stored report card header for one student, scoped to the caller's school."""
    school_id = request.headers.get('X-School-Id') or current_app.config['SCHOOL_ID']
    try:
        row = fetch_one(REPORT_CARD_QUERY, (report_card_id, school_id))
    except mysql.connector.Error as e:
        current_app.logger.error(f"Error fetching report card {report_card_id}: {e}")
        return jsonify({'error': 'Failed to fetch report card'}), 500

    if not row:
        return jsonify({'error': 'Report card not found'}), 404

    row['photo_url'] = row.get('photo_url') or DEFAULT_PHOTO
    return jsonify(row)
