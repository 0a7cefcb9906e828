import re
from datetime import datetime

import pytz

ARABIC_DIGITS = str.maketrans('0123456789', '٠١٢٣٤٥٦٧٨٩')
DASHES = re.compile('[-–—‑]')


def get_local_time(timezone_name='Africa/Kampala'):
    return datetime.now(pytz.timezone(timezone_name))


def to_arabic_digits(value):
    """Arabic-Indic digits for the right-hand header; dashes are dropped."""
    if value is None:
        return ''
    return DASHES.sub('', str(value)).translate(ARABIC_DIGITS)


def ordinal_suffix(n):
    if 11 <= n % 100 <= 13:
        return 'th'
    return {1: 'st', 2: 'nd', 3: 'rd'}.get(n % 10, 'th')


def format_position(position, total=None):
    """'3rd' or '3rd out of 40'; '-' when the student has no position."""
    if position is None:
        return '-'
    text = f"{position}{ordinal_suffix(position)}"
    if total:
        text += f" out of {total}"
    return text


def format_date(date_data, format_string='%Y-%m-%d'):
    """Jinja filter for dates; strings pass through untouched."""
    if date_data is None:
        return ''
    if isinstance(date_data, str):
        return date_data
    return date_data.strftime(format_string)


def format_score(value, digits=1):
    if value is None:
        return '-'
    return f"{value:.{digits}f}"
