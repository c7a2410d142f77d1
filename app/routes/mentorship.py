from flask import Blueprint, request, jsonify
from app.services.availability_service import AvailabilityService
from app.services.mentorship_service import MentorshipService
from app.services.slot_service import SlotService
from app.middleware.auth import require_auth, require_instructor, require_student
from app.utils.logger import get_logger

bp = Blueprint('mentorship', __name__)
logger = get_logger(__name__)
availability_service = AvailabilityService()
slot_service = SlotService()
mentorship_service = MentorshipService()


def _error_response(result):
    return jsonify({'error': result['error']}), result.get('status', 400)


# Instructor: availability management

@bp.route('/availability/my', methods=['GET'])
@require_auth
@require_instructor
def get_my_availability(current_user):
    """Get the instructor's availability, optionally within from/to dates"""
    try:
        result = availability_service.get_availability(
            current_user['user_id'],
            request.args.get('from'),
            request.args.get('to')
        )
        if result.get('error'):
            return _error_response(result)

        return jsonify(result['availability']), 200

    except Exception as e:
        logger.error(f"Error getting availability: {str(e)}")
        return jsonify({'error': 'Server error fetching availability'}), 500


@bp.route('/availability', methods=['POST'])
@require_auth
@require_instructor
def upsert_availability(current_user):
    """Create or overwrite availability for one date"""
    try:
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({'error': 'Request body must be a JSON object'}), 400

        result = availability_service.upsert_availability(current_user['user_id'], data)
        if result.get('error'):
            return _error_response(result)

        return jsonify(result), 200

    except Exception as e:
        logger.error(f"Error upserting availability: {str(e)}")
        return jsonify({'error': 'Server error updating availability'}), 500


@bp.route('/availability/<int:availability_id>', methods=['DELETE'])
@require_auth
@require_instructor
def delete_availability(current_user, availability_id):
    """Delete one day of availability"""
    try:
        result = availability_service.delete_availability(current_user['user_id'], availability_id)
        if result.get('error'):
            return _error_response(result)

        return jsonify(result), 200

    except Exception as e:
        logger.error(f"Error deleting availability: {str(e)}")
        return jsonify({'error': 'Server error deleting availability'}), 500


# Student: slots and bookings

@bp.route('/available-slots', methods=['GET'])
@require_auth
@require_student
def get_available_slots(current_user):
    """Free slots of a course's instructor on a date"""
    try:
        result = slot_service.get_available_slots(
            current_user['user_id'],
            request.args.get('courseId'),
            request.args.get('date')
        )
        if result.get('error'):
            return _error_response(result)

        return jsonify(result), 200

    except Exception as e:
        logger.error(f"Error getting available slots: {str(e)}")
        return jsonify({'error': 'Server error fetching available slots'}), 500


@bp.route('/sessions', methods=['POST'])
@require_auth
@require_student
def book_session(current_user):
    """Book a mentorship session"""
    try:
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({'error': 'Request body must be a JSON object'}), 400

        result = mentorship_service.book_session(current_user['user_id'], data)
        if result.get('error'):
            return _error_response(result)

        return jsonify(result), 201

    except Exception as e:
        logger.error(f"Error booking session: {str(e)}")
        return jsonify({'error': 'Server error booking session'}), 500


@bp.route('/sessions/my', methods=['GET'])
@require_auth
@require_student
def get_my_sessions(current_user):
    """Upcoming sessions of the student"""
    try:
        result = mentorship_service.get_student_sessions(current_user['user_id'])
        if result.get('error'):
            return _error_response(result)

        return jsonify(result['sessions']), 200

    except Exception as e:
        logger.error(f"Error getting sessions: {str(e)}")
        return jsonify({'error': 'Server error fetching your sessions'}), 500


@bp.route('/sessions/<int:session_id>', methods=['DELETE'])
@require_auth
@require_student
def cancel_session(current_user, session_id):
    """Cancel a booked session (more than 12 hours before start)"""
    try:
        result = mentorship_service.cancel_session_by_student(current_user['user_id'], session_id)
        if result.get('error'):
            return _error_response(result)

        return jsonify(result), 200

    except Exception as e:
        logger.error(f"Error cancelling session: {str(e)}")
        return jsonify({'error': 'Server error cancelling session'}), 500


# Instructor: sessions

@bp.route('/sessions/today', methods=['GET'])
@require_auth
@require_instructor
def get_today_sessions(current_user):
    """Today's booked sessions of the instructor"""
    try:
        result = mentorship_service.get_today_sessions(current_user['user_id'])
        if result.get('error'):
            return _error_response(result)

        return jsonify(result['sessions']), 200

    except Exception as e:
        logger.error(f"Error getting today's sessions: {str(e)}")
        return jsonify({'error': "Server error fetching today's sessions"}), 500


@bp.route('/sessions/<int:session_id>/complete', methods=['POST'])
@require_auth
@require_instructor
def complete_session(current_user, session_id):
    """Mark a session as completed, optionally with an instructor note"""
    try:
        data = request.get_json(silent=True) or {}
        result = mentorship_service.complete_session(
            current_user['user_id'], session_id, data.get('instructorNote')
        )
        if result.get('error'):
            return _error_response(result)

        return jsonify(result), 200

    except Exception as e:
        logger.error(f"Error completing session: {str(e)}")
        return jsonify({'error': 'Server error completing session'}), 500
