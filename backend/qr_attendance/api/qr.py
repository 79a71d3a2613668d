# backend/qr_attendance/api/qr.py
"""QR Code API endpoints."""
import io
import re

from flask import Blueprint, current_app, request, send_file

from qr_attendance import limiter
from qr_attendance.api.lectures import get_owned_lecture, lecture_to_dict
from qr_attendance.services.qr_service import QRService
from qr_attendance.utils.decorators import login_required, teacher_required
from qr_attendance.utils.helpers import error_response, success_response
from qr_attendance.utils.validators import ValidationError, Validator

qr_bp = Blueprint('qr', __name__)


def download_filename(lecture) -> str:
    """File name for a downloaded QR image, e.g. attendance-Algorithms-CS-A.png."""
    def safe(value):
        return re.sub(r"[^A-Za-z0-9_-]+", "_", value).strip("_") or "lecture"

    return f"attendance-{safe(lecture.subject)}-{safe(lecture.class_name)}.png"


def image_options(source) -> dict:
    """Image size options from a request, bounded by configuration."""
    config = current_app.config
    return {
        'width': Validator.parse_bounded_int(
            source.get('width'), config['QR_IMAGE_WIDTH'], 64, config['QR_IMAGE_MAX_WIDTH'], 'Width'
        ),
        'margin': Validator.parse_bounded_int(
            source.get('margin'), config['QR_IMAGE_MARGIN'], 0, 16, 'Margin'
        ),
        'fill_color': config['QR_FILL_COLOR'],
        'back_color': config['QR_BACK_COLOR']
    }


@qr_bp.route('/health', methods=['GET'])
def health_check():
    """Health check endpoint."""
    return success_response(message='QR service is running')


@qr_bp.route('/generate/<int:lecture_id>', methods=['POST'])
@teacher_required
@limiter.limit("30 per minute")
def generate_qr(lecture_id):
    """Generate a fresh QR code for lecture attendance."""
    lecture, error = get_owned_lecture(lecture_id)
    if error:
        return error

    try:
        options = image_options(request.get_json(silent=True) or {})
    except ValidationError as e:
        return error_response(str(e), 400)

    encoded = QRService.encode(lecture.to_descriptor())
    png = QRService.render_image(encoded.payload, **options)

    current_app.logger.info("QR token %s generated for lecture %s", encoded.token.nonce, lecture.id)

    return success_response(
        data={
            'payload': encoded.payload,
            'token': encoded.token.to_dict(),
            'qr_image': QRService.to_data_url(png),
            'filename': download_filename(lecture),
            'lecture': lecture_to_dict(lecture)
        },
        message="QR code generated successfully"
    )


@qr_bp.route('/generate/<int:lecture_id>/image.png', methods=['GET'])
@teacher_required
@limiter.limit("30 per minute")
def download_qr(lecture_id):
    """Generate a fresh QR code and download it as a PNG file."""
    lecture, error = get_owned_lecture(lecture_id)
    if error:
        return error

    try:
        options = image_options(request.args)
    except ValidationError as e:
        return error_response(str(e), 400)

    encoded = QRService.encode(lecture.to_descriptor())
    png = QRService.render_image(encoded.payload, **options)

    return send_file(
        io.BytesIO(png),
        mimetype='image/png',
        as_attachment=True,
        download_name=download_filename(lecture)
    )


@qr_bp.route('/validate', methods=['POST'])
@login_required
def validate_qr():
    """Decode QR data without recording attendance."""
    data = request.get_json(silent=True)

    if not isinstance(data, dict) or 'qr_data' not in data:
        return error_response("QR data is required", 400)

    token, decode_error = QRService.decode(data['qr_data'])
    if decode_error:
        return error_response(
            decode_error.message, 400,
            data={'valid': False, 'kind': decode_error.kind.value, 'field': decode_error.field}
        )

    return success_response(
        data={'valid': True, 'token': token.to_dict()},
        message="QR code is valid"
    )
