from io import BytesIO

import qrcode
from flask import request, jsonify, send_file

from reportcards.qr_codes import blueprint


@blueprint.route('/api/barcode', methods=['GET'])
def student_qr_code():
    """PNG QR code encoding the ``id`` query parameter, for scanning a student's card."""
    code = request.args.get('id', '').strip()
    if not code:
        return jsonify({'error': 'id is required'}), 400

    image = qrcode.make(code)
    output = BytesIO()
    image.save(output, format='PNG')
    output.seek(0)
    return send_file(output, mimetype='image/png', download_name=f"qr_{code}.png")
