"""Excel and PDF documents built from already computed reports.

Every builder writes into a fresh ``BytesIO`` and either returns it rewound
or raises ``ExportError``; a half-written document is never handed back.
"""
import logging
import re
from io import BytesIO
from xml.sax.saxutils import escape

import pandas as pd
from openpyxl.styles import Alignment, Font
from openpyxl.utils import get_column_letter
from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import PageBreak, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from reportcards.reporting.errors import ExportError
from reportcards.utils.formatting import format_position, format_score

logger = logging.getLogger(__name__)

XLSX_MIMETYPE = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'
PDF_MIMETYPE = 'application/pdf'

ACADEMIC_COLUMNS = ['Student Name', 'Subject', 'Teacher Initials', 'Score', 'Grade', 'Position']
TAHFIZ_COLUMNS = ['Student Name', 'Teacher Initials', 'Retention Score', 'Tajweed Score',
                  'Overall Score', 'Grade', 'Position']

SHEET_TITLE_LIMIT = 31
FORBIDDEN_SHEET_CHARS = re.compile(r'[\[\]:*?/\\]')

BANNER_BLUE = colors.HexColor('#1a4be7')
RIBBON_GREY = colors.HexColor('#918c8c')


def sheet_title(name, used):
    """Excel-safe, unique worksheet title."""
    base = FORBIDDEN_SHEET_CHARS.sub('', str(name or '')).strip() or 'Sheet'
    base = base[:SHEET_TITLE_LIMIT]
    title = base
    counter = 2
    while title.lower() in used:
        suffix = f" ({counter})"
        title = base[:SHEET_TITLE_LIMIT - len(suffix)] + suffix
        counter += 1
    used.add(title.lower())
    return title


def _style_sheet(worksheet, frame):
    for cell in worksheet[1]:
        cell.font = Font(bold=True)
        cell.alignment = Alignment(horizontal='center')
    for index, column in enumerate(frame.columns, start=1):
        values = [str(column)] + [str(v) for v in frame[column].tolist()]
        width = min(max(len(v) for v in values) + 2, 50)
        worksheet.column_dimensions[get_column_letter(index)].width = width


def _write_workbook(sheets, columns):
    output = BytesIO()
    try:
        with pd.ExcelWriter(output, engine='openpyxl') as writer:
            used = set()
            if not sheets:
                sheets = [('Reports', [])]
            for name, rows in sheets:
                frame = pd.DataFrame(rows, columns=columns)
                title = sheet_title(name, used)
                frame.to_excel(writer, sheet_name=title, index=False)
                _style_sheet(writer.sheets[title], frame)
    except Exception as exc:
        logger.exception("Excel export failed")
        raise ExportError(f"Could not build the Excel workbook: {exc}") from exc
    output.seek(0)
    return output


def academic_workbook(class_reports):
    """One sheet per class, one line per student and subject."""
    sheets = []
    for class_report in class_reports:
        rows = []
        for report in class_report.students:
            for line in report.subjects:
                rows.append([
                    report.full_name,
                    line.subject_name,
                    line.initials,
                    line.total_marks,
                    line.grade,
                    report.position,
                ])
        sheets.append((class_report.class_name, rows))
    return _write_workbook(sheets, ACADEMIC_COLUMNS)


def tahfiz_workbook(tahfiz_report, initials=None):
    """One sheet per Tahfiz class, one line per student."""
    initials = initials or {}
    sheets = []
    for tahfiz_class in tahfiz_report:
        rows = []
        for standing in tahfiz_class.standings:
            student = standing.student
            rows.append([
                f"{student.first_name or ''} {student.last_name or ''}".strip(),
                tahfiz_initials(student, initials),
                f"{format_score(standing.retention_score)}%",
                f"{format_score(standing.tajweed_score)}%",
                f"{format_score(standing.overall_score)}%",
                standing.grade,
                standing.position,
            ])
        sheets.append((tahfiz_class.class_name, rows))
    return _write_workbook(sheets, TAHFIZ_COLUMNS)


def tahfiz_initials(student, initials):
    key = f"{student.class_id}-{student.subject_id}"
    return initials.get(key) or student.teacher_initials or 'N/A'


def _styles():
    styles = getSampleStyleSheet()
    return {
        'school': ParagraphStyle('SchoolName', parent=styles['Heading1'], fontSize=14,
                                 alignment=TA_CENTER, spaceAfter=2, fontName='Helvetica-Bold'),
        'address': ParagraphStyle('SchoolAddress', parent=styles['Normal'], fontSize=8,
                                  alignment=TA_CENTER, spaceAfter=1),
        'banner': ParagraphStyle('Banner', parent=styles['Normal'], fontSize=11,
                                 alignment=TA_CENTER, textColor=colors.white,
                                 backColor=BANNER_BLUE, fontName='Helvetica-Bold',
                                 spaceBefore=4, spaceAfter=6, leading=16),
        'ribbon': ParagraphStyle('Ribbon', parent=styles['Normal'], fontSize=9,
                                 backColor=RIBBON_GREY, fontName='Helvetica-Bold',
                                 spaceBefore=4, spaceAfter=4, leading=13),
        'heading': styles['Heading2'],
        'normal': ParagraphStyle('Info', parent=styles['Normal'], fontSize=9, leading=12),
    }


def _school_header(school_info, styles):
    school_info = school_info or {}
    story = []
    if school_info.get('name'):
        story.append(Paragraph(escape(school_info['name']), styles['school']))
    for key in ('address', 'po_box', 'contact', 'center_no', 'registration_no'):
        if school_info.get(key):
            story.append(Paragraph(escape(school_info[key]), styles['address']))
    return story


GRID_STYLE = TableStyle([
    ('GRID', (0, 0), (-1, -1), 0.5, colors.black),
    ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor('#e6f0fa')),
    ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
    ('FONTSIZE', (0, 0), (-1, -1), 8),
    ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
])


def _subject_table(report, styles):
    header = ['Subject']
    if report.is_end_of_term:
        header += ['MT', 'EOT']
    header += ['Score', 'Grade', 'Comment', 'Initials']

    data = [header]
    for line in report.subjects:
        row = [line.subject_name]
        if report.is_end_of_term:
            row += [line.mid_term_marks, line.end_term_marks]
        row += [line.total_marks, line.descriptive_grade,
                Paragraph(escape(line.comment), styles['normal']), line.initials]
        data.append(row)

    totals = ['TOTAL MARKS']
    if report.is_end_of_term:
        totals += [report.total_mid_term, report.total_end_term]
    totals += [report.total_marks, '', f"AVERAGE: {report.average}", '']
    data.append(totals)

    table = Table(data, repeatRows=1)
    table.setStyle(GRID_STYLE)
    table.setStyle(TableStyle([('FONTNAME', (0, -1), (-1, -1), 'Helvetica-Bold')]))
    return table


def _student_page(report, school_info, styles):
    story = _school_header(school_info, styles)
    story.append(Paragraph(escape(report.title), styles['banner']))

    info = [
        ['Name:', report.full_name, 'Student No:', str(report.student_id)],
        ['Gender:', report.gender or '-', 'Term:', report.term_label],
        ['Class:', report.class_name, 'Group:', report.group_name or 'A'],
    ]
    info_table = Table(info, colWidths=[0.9 * inch, 2.4 * inch, 1.0 * inch, 2.2 * inch])
    info_table.setStyle(TableStyle([
        ('FONTNAME', (0, 0), (0, -1), 'Helvetica-Bold'),
        ('FONTNAME', (2, 0), (2, -1), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, -1), 9),
        ('BOX', (0, 0), (-1, -1), 1, BANNER_BLUE),
    ]))
    story += [info_table, Paragraph('Marks attained in each subject', styles['ribbon'])]
    story.append(_subject_table(report, styles))
    story.append(Spacer(1, 6))

    if report.is_nursery:
        assessment = f"Overall Grade: {report.overall_grade}"
    else:
        assessment = f"Aggregates: {report.aggregates}    Division: {report.division}"
    position = format_position(report.position, report.total_in_class)
    story.append(Paragraph(f"{assessment}    Position: {position}", styles['normal']))
    story.append(Spacer(1, 6))

    for label, key in (("Class Teacher's Comment:", 'class_teacher'),
                       ('DOS Comment:', 'dos'),
                       ("Headteacher's Comment:", 'headteacher')):
        story.append(Paragraph(f"<b>{label}</b> {escape(report.comments[key])}", styles['normal']))
    if report.next_term_begins:
        story.append(Paragraph(f"<b>Next term begins:</b> {escape(report.next_term_begins)}", styles['normal']))
    return story


def _build_pdf(story):
    buffer = BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=A4, topMargin=0.3 * inch, bottomMargin=0.3 * inch,
                            leftMargin=0.4 * inch, rightMargin=0.4 * inch)
    try:
        doc.build(story)
    except Exception as exc:
        logger.exception("PDF export failed")
        raise ExportError(f"Could not build the PDF document: {exc}") from exc
    buffer.seek(0)
    return buffer


def academic_pdf(class_reports, school_info=None):
    """One A4 page per student report card."""
    styles = _styles()
    story = []
    for class_report in class_reports:
        for report in class_report.students:
            if story:
                story.append(PageBreak())
            story += _student_page(report, school_info, styles)
    if not story:
        story.append(Paragraph('No reports match the selected filters.', styles['normal']))
    return _build_pdf(story)


def tahfiz_pdf(tahfiz_report, school_info=None, initials=None):
    """A summary table per Tahfiz class."""
    initials = initials or {}
    styles = _styles()
    story = _school_header(school_info, styles)
    for index, tahfiz_class in enumerate(tahfiz_report):
        if index:
            story.append(PageBreak())
        story.append(Paragraph(f"{escape(tahfiz_class.class_name)} - Tahfiz Reports", styles['heading']))
        data = [TAHFIZ_COLUMNS]
        for standing in tahfiz_class.standings:
            student = standing.student
            data.append([
                f"{student.first_name or ''} {student.last_name or ''}".strip(),
                tahfiz_initials(student, initials),
                f"{format_score(standing.retention_score)}%",
                f"{format_score(standing.tajweed_score)}%",
                f"{format_score(standing.overall_score)}%",
                standing.grade,
                format_position(standing.position, standing.total_in_class),
            ])
        table = Table(data, repeatRows=1)
        table.setStyle(GRID_STYLE)
        story.append(table)
    if not tahfiz_report:
        story.append(Paragraph('No Tahfiz learners match the selected filters.', styles['normal']))
    return _build_pdf(story)
