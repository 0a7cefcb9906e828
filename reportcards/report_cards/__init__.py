from flask import Blueprint

blueprint = Blueprint(
    'report_cards_blueprint',
    __name__,
    url_prefix=''
)
