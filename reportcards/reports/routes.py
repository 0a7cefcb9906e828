from flask import render_template, request, redirect, url_for, flash, session, jsonify, send_file, current_app

from reportcards import feeds
from reportcards.reports import blueprint
from reportcards.reporting import export
from reportcards.reporting.errors import ExportError, FeedError
from reportcards.reporting.filters import ReportFilters
from reportcards.reporting.report import (
    ReportOptions, build_report, filter_choices, initials_key, report_to_dict
)
from reportcards.utils.formatting import get_local_time

TRUTHY = ('1', 'true', 'yes', 'on')


def load_results():
    """Fetch raw result rows; an unreachable feed yields an empty report."""
    params = {'school_id': current_app.config['SCHOOL_ID']}
    try:
        _students, results = feeds.fetch_results_feed(params)
    except FeedError as e:
        current_app.logger.error(f"Results feed unavailable: {e}")
        return []
    return results


def conversion_enabled():
    value = request.args.get('convert')
    if value is None:
        return current_app.config['ENABLE_MARK_CONVERSION']
    return value.strip().lower() in TRUTHY


def report_options():
    return ReportOptions(
        enable_conversion=conversion_enabled(),
        initials=session.get('teacher_initials', {}),
        school_info=current_app.config['SCHOOL_INFO'],
        next_term_begins=session.get('next_term_begins') or current_app.config['NEXT_TERM_BEGINS'],
        class_keyword=request.args.get('section', ''),
        term_label=session.get('term_label', ''),
    )


def load_promotions(filters):
    """Promotion candidates, only asked for in the final term with a class selected."""
    config = current_app.config
    if filters.term != config['FINAL_TERM_NAME'] or not filters.class_name:
        return None
    term_id = config['TERM_IDS'].get(filters.term, config['DEFAULT_TERM_ID'])
    try:
        return feeds.fetch_promotions(term_id, filters.class_name)
    except FeedError as e:
        current_app.logger.error(f"Promotion service unavailable: {e}")
        return None


def compute_reports():
    filters = ReportFilters.from_args(request.args)
    options = report_options()
    results = load_results()
    return filters, options, results, build_report(results, filters, options)


def export_filename(stem, extension):
    stamp = get_local_time(current_app.config['TIMEZONE']).strftime('%Y%m%d_%H%M')
    return f"{stem}_{stamp}.{extension}"


def back_to_reports():
    return redirect(url_for('reports_blueprint.reports', **request.args.to_dict()))


@blueprint.route('/reports', methods=['GET'])
def reports():
    """Printable report cards for the selected term, result type and class."""
    filters, options, results, class_reports = compute_reports()
    return render_template(
        'reports/reports.html',
        class_reports=class_reports,
        filters=filters,
        choices=filter_choices(results),
        promotions=load_promotions(filters),
        enable_conversion=options.enable_conversion,
        next_term_begins=options.next_term_begins,
        print_date=get_local_time(current_app.config['TIMEZONE']),
        segment='reports'
    )


@blueprint.route('/reports/data', methods=['GET'])
def reports_data():
    filters, options, results, class_reports = compute_reports()
    return jsonify({
        'filters': filters._asdict(),
        'enable_conversion': options.enable_conversion,
        'choices': filter_choices(results),
        'promotions': load_promotions(filters),
        'classes': report_to_dict(class_reports),
    })


@blueprint.route('/reports/export/excel', methods=['GET'])
def export_excel():
    _filters, _options, _results, class_reports = compute_reports()
    try:
        output = export.academic_workbook(class_reports)
    except ExportError as e:
        current_app.logger.error(f"Excel export failed: {e}")
        flash('Failed to export Excel. Please try again.', 'danger')
        return back_to_reports()

    return send_file(
        output,
        as_attachment=True,
        download_name=export_filename('Reports', 'xlsx'),
        mimetype=export.XLSX_MIMETYPE
    )


@blueprint.route('/reports/export/pdf', methods=['GET'])
def export_pdf():
    _filters, options, _results, class_reports = compute_reports()
    try:
        output = export.academic_pdf(class_reports, options.school_info)
    except ExportError as e:
        current_app.logger.error(f"PDF export failed: {e}")
        flash('Failed to export PDF. Please try again.', 'danger')
        return back_to_reports()

    return send_file(
        output,
        as_attachment=True,
        download_name=export_filename('Reports', 'pdf'),
        mimetype=export.PDF_MIMETYPE
    )


def posted_data():
    return request.get_json(silent=True) or request.form.to_dict()


@blueprint.route('/reports/teacher-initials', methods=['POST'])
def teacher_initials():
    """Keep the typed initials for this session and pass them on to the backend."""
    data = posted_data()
    class_key = str(data.get('class_name') or data.get('classId') or '').strip()
    subject_key = str(data.get('subject_name') or data.get('subjectId') or '').strip()
    if not class_key or not subject_key:
        return jsonify({'error': 'class and subject are required'}), 400

    initials = str(data.get('initials') or '').strip() or 'N/A'
    overrides = dict(session.get('teacher_initials', {}))
    overrides[initials_key(class_key, subject_key)] = initials
    session['teacher_initials'] = overrides

    saved = feeds.save_teacher_initials(
        data.get('classId') or class_key,
        data.get('subjectId') or subject_key,
        initials,
    )
    return jsonify({'initials': initials, 'saved': saved})


@blueprint.route('/reports/next-term', methods=['POST'])
def next_term():
    data = posted_data()
    date_text = str(data.get('nextTermBegins') or '').strip()
    if not date_text:
        return jsonify({'error': 'nextTermBegins is required'}), 400

    session['next_term_begins'] = date_text
    saved = feeds.save_next_term_begins(date_text)
    return jsonify({'nextTermBegins': date_text, 'saved': saved})


@blueprint.route('/reports/term-label', methods=['POST'])
def term_label():
    """Term text printed on the cards; empty resets to the feed's term."""
    label = str(posted_data().get('term_label') or '').strip()
    if label:
        session['term_label'] = label
    else:
        session.pop('term_label', None)
    return jsonify({'term_label': label})


@blueprint.route('/reports/promote', methods=['POST'])
def promote():
    data = posted_data()
    student_ids = data.get('studentIds') or []
    new_class_id = data.get('newClassId')
    if not student_ids or not new_class_id:
        return jsonify({'success': False, 'message': 'studentIds and newClassId are required'}), 400

    try:
        feeds.promote_students(student_ids, new_class_id)
    except FeedError as e:
        current_app.logger.error(f"Promotion failed: {e}")
        return jsonify({'success': False, 'message': str(e)}), 502

    return jsonify({'success': True, 'message': f"Successfully promoted {len(student_ids)} student(s)!"})
