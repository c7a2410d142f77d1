from flask import Blueprint, request, jsonify
from app.services.notification_service import NotificationService
from app.middleware.auth import require_auth
from app.utils.logger import get_logger

bp = Blueprint('notifications', __name__)
logger = get_logger(__name__)
notification_service = NotificationService()


@bp.route('/', methods=['GET'], strict_slashes=False)
@require_auth
def get_notifications(current_user):
    """Paginated notifications, newest first"""
    try:
        unread_only = request.args.get('unreadOnly') == 'true'
        page = request.args.get('page', 1, type=int)
        limit = request.args.get('limit', 20, type=int)

        result = notification_service.get_notifications(
            current_user['user_id'], unread_only=unread_only, page=page, limit=limit
        )
        if result.get('error'):
            return jsonify({'error': result['error']}), result.get('status', 500)

        return jsonify(result), 200

    except Exception as e:
        logger.error(f"Error getting notifications: {str(e)}")
        return jsonify({'error': 'Server error fetching notifications'}), 500


@bp.route('/unread-count', methods=['GET'])
@require_auth
def get_unread_count(current_user):
    try:
        result = notification_service.get_unread_count(current_user['user_id'])
        if result.get('error'):
            return jsonify({'error': result['error']}), result.get('status', 500)

        return jsonify(result), 200

    except Exception as e:
        logger.error(f"Error getting unread count: {str(e)}")
        return jsonify({'error': 'Server error fetching unread count'}), 500


@bp.route('/<int:notification_id>/read', methods=['POST'])
@require_auth
def mark_as_read(notification_id, current_user):
    try:
        result = notification_service.mark_as_read(current_user['user_id'], notification_id)
        if result.get('error'):
            return jsonify({'error': result['error']}), result.get('status', 500)

        return jsonify(result), 200

    except Exception as e:
        logger.error(f"Error marking notification as read: {str(e)}")
        return jsonify({'error': 'Server error updating notification'}), 500


@bp.route('/read-all', methods=['POST'])
@require_auth
def mark_all_as_read(current_user):
    try:
        result = notification_service.mark_all_as_read(current_user['user_id'])
        if result.get('error'):
            return jsonify({'error': result['error']}), result.get('status', 500)

        return jsonify(result), 200

    except Exception as e:
        logger.error(f"Error marking notifications as read: {str(e)}")
        return jsonify({'error': 'Server error updating notifications'}), 500
