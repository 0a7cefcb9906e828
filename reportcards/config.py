import os
import secrets


def _flag(name, default='0'):
    return os.getenv(name, default).strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    """Base configuration class."""
    SECRET_KEY = os.getenv('SECRET_KEY') or secrets.token_hex(32)

    # MySQL holds the stored report cards (header, comments)
    MYSQL_HOST = os.getenv('MYSQL_HOST', 'localhost')
    MYSQL_USER = os.getenv('MYSQL_USER', 'root')
    MYSQL_PASSWORD = os.getenv('MYSQL_PASSWORD', '')
    MYSQL_DATABASE = os.getenv('MYSQL_DATABASE', 'school')

    # Backend serving results, Tahfiz records, initials and promotions
    RESULTS_API_BASE = os.getenv('RESULTS_API_BASE', 'http://localhost/api')
    FEED_TIMEOUT = float(os.getenv('FEED_TIMEOUT', '15'))
    SCHOOL_ID = os.getenv('SCHOOL_ID', '1')

    TIMEZONE = os.getenv('TIMEZONE', 'Africa/Kampala')

    ENABLE_MARK_CONVERSION = _flag('ENABLE_MARK_CONVERSION')
    NEXT_TERM_BEGINS = os.getenv('NEXT_TERM_BEGINS', '')
    FINAL_TERM_NAME = os.getenv('FINAL_TERM_NAME', 'Term 3')
    TERM_IDS = {'Term 1': '1', 'Term 2': '2', 'Term 3': '3'}
    DEFAULT_TERM_ID = '1'

    # Printed in every report header
    SCHOOL_INFO = {
        'name': os.getenv('SCHOOL_NAME', ''),
        'address': os.getenv('SCHOOL_ADDRESS', ''),
        'po_box': os.getenv('SCHOOL_PO_BOX', ''),
        'logo_url': os.getenv('SCHOOL_LOGO_URL', '/static/logo.png'),
        'contact': os.getenv('SCHOOL_CONTACT', ''),
        'center_no': os.getenv('SCHOOL_CENTER_NO', ''),
        'registration_no': os.getenv('SCHOOL_REGISTRATION_NO', ''),
        'arabic_name': os.getenv('SCHOOL_ARABIC_NAME', ''),
        'arabic_address': os.getenv('SCHOOL_ARABIC_ADDRESS', ''),
        'arabic_contact': os.getenv('SCHOOL_ARABIC_CONTACT', ''),
        'arabic_center_no': os.getenv('SCHOOL_ARABIC_CENTER_NO', ''),
        'arabic_registration_no': os.getenv('SCHOOL_ARABIC_REGISTRATION_NO', ''),
    }


class TestConfig(Config):
    TESTING = True
    WTF_CSRF_ENABLED = False
    SECRET_KEY = 'test-secret-key'
    RESULTS_API_BASE = 'http://backend.test/api'
    SCHOOL_INFO = dict(Config.SCHOOL_INFO, name='TEST PRIMARY SCHOOL', address='P.O. BOX 1, KAMPALA')
