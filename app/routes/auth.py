from flask import Blueprint, request, jsonify
from app.services.auth_service import AuthService
from app.middleware.auth import require_auth
from app.utils.validators import validate_email, validate_password
from app.utils.logger import get_logger

bp = Blueprint('auth', __name__)
logger = get_logger(__name__)
auth_service = AuthService()


@bp.route('/register', methods=['POST'])
def register():
    """Register a new user"""
    try:
        data = request.get_json(silent=True) or {}

        # Validate required fields
        required_fields = ['name', 'email', 'password', 'role']
        for field in required_fields:
            if not data.get(field):
                return jsonify({'error': f'{field} is required'}), 400

        # Validate email
        valid, error = validate_email(data['email'])
        if not valid:
            return jsonify({'error': error}), 400

        # Validate password
        valid, error = validate_password(data['password'])
        if not valid:
            return jsonify({'error': error}), 400

        # Validate role
        valid_roles = ['student', 'instructor']
        if data['role'] not in valid_roles:
            return jsonify({'error': f'Invalid role. Must be one of: {", ".join(valid_roles)}'}), 400

        result = auth_service.register_user(data)

        if result.get('error'):
            return jsonify({'error': result['error']}), 400

        return jsonify({
            'message': 'Registration successful',
            'user_id': result['user_id']
        }), 201

    except Exception as e:
        logger.error(f"Registration error: {str(e)}")
        return jsonify({'error': 'Registration failed'}), 500


@bp.route('/login', methods=['POST'])
def login():
    """Login user"""
    try:
        data = request.get_json(silent=True) or {}

        if not data.get('email') or not data.get('password'):
            return jsonify({'error': 'Email and password are required'}), 400

        result = auth_service.authenticate_user(data['email'], data['password'])

        if result.get('error'):
            return jsonify({'error': result['error']}), 401

        return jsonify({
            'access_token': result['access_token'],
            'user': result['user']
        }), 200

    except Exception as e:
        logger.error(f"Login error: {str(e)}")
        return jsonify({'error': 'Login failed'}), 500


@bp.route('/me', methods=['GET'])
@require_auth
def me(current_user):
    """Get the authenticated user"""
    try:
        result = auth_service.get_user(current_user['user_id'])
        if result.get('error'):
            return jsonify({'error': result['error']}), 404

        return jsonify(result), 200

    except Exception as e:
        logger.error(f"Error getting current user: {str(e)}")
        return jsonify({'error': 'Failed to get user'}), 500
