"""Image upload and serving."""
from flask import Blueprint, current_app, jsonify, request, send_from_directory

from errors import InputError
from panel.bulk_import import ImageFile, upload_image
from panel.routes import api_errors

bp = Blueprint('images', __name__)


@bp.route('/api/upload-image', methods=['POST'])
@api_errors("Upload failed")
def upload():
    storage = request.files.get('file')
    if storage is None:
        raise InputError("No file provided")

    image = ImageFile(
        filename=storage.filename or '',
        content_type=storage.mimetype or '',
        data=storage.read(),
    )
    return jsonify(upload_image(image, current_app.config['IMAGE_STORE']))


@bp.route('/images/<path:filename>')
def serve_image(filename):
    """Serve a stored image (404 for unknown names)."""
    return send_from_directory(current_app.config['IMAGE_STORE'].root, filename)
