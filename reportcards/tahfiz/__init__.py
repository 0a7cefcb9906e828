from flask import Blueprint

blueprint = Blueprint(
    'tahfiz_blueprint',
    __name__,
    url_prefix=''
)
