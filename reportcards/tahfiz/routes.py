from flask import render_template, request, redirect, url_for, flash, session, jsonify, send_file, current_app

from reportcards import feeds
from reportcards.reporting import export
from reportcards.reporting.errors import ExportError, FeedError
from reportcards.reporting.tahfiz import TahfizFilters, build_tahfiz_report, tahfiz_report_to_dict
from reportcards.tahfiz import blueprint
from reportcards.utils.formatting import get_local_time


def tahfiz_params(filters):
    config = current_app.config
    params = {
        'school_id': config['SCHOOL_ID'],
        'term_id': config['TERM_IDS'].get(filters.term, filters.term or config['DEFAULT_TERM_ID']),
    }
    for key, arg in (('class_id', 'class_id'), ('group_id', 'group_id'), ('student_id', 'student_id')):
        value = request.args.get(arg, '').strip()
        if value:
            params[key] = value
    return params


def compute_tahfiz():
    filters = TahfizFilters.from_args(request.args)
    try:
        raw_students = feeds.fetch_tahfiz_feed(tahfiz_params(filters))
    except FeedError as e:
        current_app.logger.error(f"Tahfiz feed unavailable: {e}")
        raw_students = []
    return filters, build_tahfiz_report(raw_students, filters)


def export_filename(extension):
    stamp = get_local_time(current_app.config['TIMEZONE']).strftime('%Y%m%d_%H%M')
    return f"Tahfiz_Reports_{stamp}.{extension}"


def back_to_tahfiz():
    return redirect(url_for('tahfiz_blueprint.tahfiz_reports', **request.args.to_dict()))


@blueprint.route('/tahfiz/reports', methods=['GET'])
def tahfiz_reports():
    filters, report = compute_tahfiz()
    return render_template(
        'tahfiz/reports.html',
        report=report,
        filters=filters,
        initials=session.get('teacher_initials', {}),
        segment='tahfiz'
    )


@blueprint.route('/tahfiz/reports/data', methods=['GET'])
def tahfiz_reports_data():
    filters, report = compute_tahfiz()
    return jsonify({'filters': filters._asdict(), 'classes': tahfiz_report_to_dict(report)})


@blueprint.route('/tahfiz/reports/export/excel', methods=['GET'])
def tahfiz_export_excel():
    _filters, report = compute_tahfiz()
    try:
        output = export.tahfiz_workbook(report, session.get('teacher_initials', {}))
    except ExportError as e:
        current_app.logger.error(f"Tahfiz Excel export failed: {e}")
        flash('Failed to export Excel. Please try again.', 'danger')
        return back_to_tahfiz()

    return send_file(output, as_attachment=True,
                     download_name=export_filename('xlsx'),
                     mimetype=export.XLSX_MIMETYPE)


@blueprint.route('/tahfiz/reports/export/pdf', methods=['GET'])
def tahfiz_export_pdf():
    _filters, report = compute_tahfiz()
    try:
        output = export.tahfiz_pdf(report, current_app.config['SCHOOL_INFO'],
                                   session.get('teacher_initials', {}))
    except ExportError as e:
        current_app.logger.error(f"Tahfiz PDF export failed: {e}")
        flash('Failed to export PDF. Please try again.', 'danger')
        return back_to_tahfiz()

    return send_file(output, as_attachment=True,
                     download_name=export_filename('pdf'),
                     mimetype=export.PDF_MIMETYPE)
