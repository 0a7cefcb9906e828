from flask import Blueprint

blueprint = Blueprint(
    'qr_codes_blueprint',
    __name__,
    url_prefix=''
)
