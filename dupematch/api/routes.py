"""
Flask routes for dupematch.

Thin HTTP layer over the matching orchestrator: upload parsing, size
limits, saving accepted reference images and JSON responses.
"""

from __future__ import annotations

import logging
import math
import os
import time
from pathlib import Path
from typing import Optional

from flask import Blueprint, current_app, jsonify, request
from werkzeug.utils import secure_filename

from ..exceptions import DuplicateFingerprintError, ImageLoadError
from ..features import load_image
from ..index import is_image_file
from ..orchestrator import MatchingOrchestrator
from ..similarity import compare_images

# Create blueprint for routes
api = Blueprint('api', __name__)

# Module logger
_logger = logging.getLogger(__name__)


def _orchestrator() -> MatchingOrchestrator:
    return current_app.config['ORCHESTRATOR']


def _threshold_param() -> float:
    """Parse the optional 'threshold' form field, falling back to the default."""
    default = current_app.config['DEFAULT_THRESHOLD']
    raw = request.form.get('threshold', '').strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    if math.isnan(value):
        return default
    return value


def _read_upload(field: str) -> tuple[Optional[bytes], Optional[tuple]]:
    """
    Read an uploaded file into memory.

    Returns:
        (data, None) on success, (None, error_response) otherwise
    """
    upload = request.files.get(field)
    if upload is None or not upload.filename:
        return None, (jsonify({'error': f"Image file '{field}' not found"}), 400)

    data = upload.read()
    if len(data) > current_app.config['MAX_UPLOAD_BYTES']:
        limit_mb = current_app.config['MAX_UPLOAD_BYTES'] // (1024 * 1024)
        return None, (jsonify({'error': f"File exceeds {limit_mb}MB limit"}), 413)
    return data, None


# =============================================================================
# Route Handlers
# =============================================================================

@api.route('/recognize', methods=['POST'])
def recognize():
    """Match an uploaded image against the reference index."""
    start = time.perf_counter()
    data, error = _read_upload('image')
    if error:
        return error

    try:
        image = load_image(data)
    except ImageLoadError:
        return jsonify({'error': 'Invalid image format'}), 400

    result = _orchestrator().recognize(image, _threshold_param())

    return jsonify({
        'result': 'OK' if result.matched else 'NOT OK',
        'similarity': result.score,
        'matched_image': result.filename,
        'method': result.method,
        'processing_time_ms': int((time.perf_counter() - start) * 1000),
    })


@api.route('/compare', methods=['POST'])
def compare():
    """Compare two uploaded images directly, without the index."""
    start = time.perf_counter()
    first, error = _read_upload('image1')
    if error:
        return error
    second, error = _read_upload('image2')
    if error:
        return error

    try:
        image1 = load_image(first)
        image2 = load_image(second)
    except ImageLoadError:
        return jsonify({'error': 'Invalid image format'}), 400

    index = _orchestrator().index
    extractor = index.extractor if index.get_mode() else None
    similarity = compare_images(image1, image2, extractor)

    return jsonify({
        'similarity': similarity,
        'match': similarity >= _threshold_param(),
        'processing_time_ms': int((time.perf_counter() - start) * 1000),
    })


@api.route('/admin/add', methods=['POST'])
def add_image():
    """Add an uploaded reference image and save it to the images directory."""
    upload = request.files.get('image')
    if upload is not None and upload.filename and not is_image_file(upload.filename):
        return jsonify({'error': 'Unsupported file format. Please upload a valid image.'}), 400

    data, error = _read_upload('image')
    if error:
        return error

    try:
        image = load_image(data)
    except ImageLoadError:
        return jsonify({'error': 'Invalid image format'}), 400

    ext = os.path.splitext(upload.filename)[1].lower()
    custom_name = request.form.get('name', '').strip()
    filename = secure_filename(custom_name + ext if custom_name else upload.filename)
    unique_filename = f"{time.time_ns()}_{filename}"

    orchestrator = _orchestrator()
    fingerprint, add_error = orchestrator.add(image, unique_filename)
    if add_error is not None:
        status = 409 if isinstance(add_error, DuplicateFingerprintError) else 400
        return jsonify({'error': str(add_error)}), status

    save_path = Path(current_app.config['IMAGES_DIR']) / unique_filename
    try:
        save_path.parent.mkdir(parents=True, exist_ok=True)
        save_path.write_bytes(data)
    except OSError as e:
        _logger.error(f"Error saving image to {save_path}: {e}")
        orchestrator.index.remove(fingerprint)
        if isinstance(e, PermissionError):
            return jsonify({'error': 'Permission denied while saving image'}), 500
        return jsonify({'error': 'Error saving image'}), 500

    return jsonify({
        'message': 'Image added successfully',
        'filename': unique_filename,
        'hash': fingerprint,
    })


@api.route('/admin/toggle-ml', methods=['POST'])
def toggle_mode():
    """Enable or disable hybrid (descriptor first) matching, or report it."""
    index = _orchestrator().index
    enable = request.form.get('enable', '').strip().lower()

    if enable == 'true':
        index.toggle_mode(True)
        return jsonify({'message': 'Hybrid matching enabled', 'status': 'enabled'})
    if enable == 'false':
        index.toggle_mode(False)
        return jsonify({'message': 'Hybrid matching disabled', 'status': 'disabled'})
    status = 'enabled' if index.toggle_mode() else 'disabled'
    return jsonify({'message': 'Hybrid matching status', 'status': status})


@api.route('/admin/images', methods=['GET'])
def list_images():
    """List indexed reference images (descriptors are never exposed)."""
    records = _orchestrator().index.list_records()
    return jsonify({
        'count': len(records),
        'images': [record.to_dict() for record in records],
    })
