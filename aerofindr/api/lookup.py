"""
Photo lookup API endpoints.

Provides endpoints for:
- POST /api/lookup - Upload a photo and find the flight it shows
- GET /api/lookup/state - Current processing state (spinner, match, message)

Processing errors are part of the state (error_message), not HTTP errors:
a photo without GPS data still answers 200.
"""

import concurrent.futures
import logging
import time
from datetime import datetime, timezone

from flask import Blueprint, current_app, jsonify, request

from aerofindr.models import ProcessingOutcome
from aerofindr.photos import BytesPhoto

logger = logging.getLogger(__name__)

lookup_bp = Blueprint('lookup', __name__, url_prefix='/api/lookup')


def _timed(result: dict, query_start: float) -> dict:
    result['timestamp'] = datetime.now(timezone.utc).isoformat()
    result['query_time_ms'] = round((time.perf_counter() - query_start) * 1000, 2)
    return result


def _state_response(query_start: float) -> dict:
    """Shared processing state, as the presentation layer sees it."""
    finder = current_app.config['FLIGHT_FINDER']
    return _timed(finder.state.to_dict(), query_start)


def _outcome_response(outcome: ProcessingOutcome, query_start: float) -> dict:
    """
    Result of this request only.

    Built from the outcome rather than the shared state, which may already
    belong to a newer upload.
    """
    result = outcome.to_state().to_dict()
    result['status'] = outcome.status.value
    result['superseded'] = outcome.superseded
    return _timed(result, query_start)


@lookup_bp.route('', methods=['POST'])
def lookup_photo():
    """
    Find the flight in an uploaded photo.

    Form fields:
    - photo: the image file (JPEG, HEIC, ...)

    Query parameters:
    - wait: boolean, block until the lookup settles (default true).
            With wait=false the request answers 202 and the client polls
            /api/lookup/state.
    """
    start_time = time.perf_counter()
    wait = request.args.get('wait', 'true').lower() == 'true'

    upload = request.files.get('photo')
    photo = BytesPhoto(
        upload.read() if upload else None,
        filename=upload.filename if upload else None,
    )
    logger.info(f'Lookup requested for {photo!r}')

    finder = current_app.config['FLIGHT_FINDER']
    runner = current_app.config['LOOP_RUNNER']
    future = runner.submit(finder.process_selected_photo(photo))

    if not wait:
        return jsonify({'status': 'accepted'}), 202

    wait_seconds = current_app.config['LOOKUP_WAIT_SECONDS']
    try:
        outcome = future.result(timeout=wait_seconds)
    except concurrent.futures.TimeoutError:
        logger.warning(f'Lookup still running after {wait_seconds}s')
        return jsonify(_state_response(start_time)), 202

    return jsonify(_outcome_response(outcome, start_time))


@lookup_bp.route('/state', methods=['GET'])
def get_state():
    """Get the current processing state."""
    return jsonify(_state_response(time.perf_counter()))
