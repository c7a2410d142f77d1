from flask import Blueprint, request, jsonify
from app.services.course_service import CourseService
from app.middleware.auth import require_auth, require_instructor, require_student
from app.utils.logger import get_logger

bp = Blueprint('courses', __name__)
logger = get_logger(__name__)
course_service = CourseService()


@bp.route('/', methods=['POST'], strict_slashes=False)
@require_auth
@require_instructor
def create_course(current_user):
    """Create a course taught by the instructor"""
    try:
        data = request.get_json(silent=True) or {}

        if not isinstance(data.get('title'), str) or not data['title'].strip():
            return jsonify({'error': 'title is required'}), 400

        result = course_service.create_course(current_user['user_id'], data)
        if result.get('error'):
            return jsonify({'error': result['error']}), result.get('status', 400)

        return jsonify(result), 201

    except Exception as e:
        logger.error(f"Error creating course: {str(e)}")
        return jsonify({'error': 'Failed to create course'}), 500


@bp.route('/my', methods=['GET'])
@require_auth
@require_instructor
def get_my_courses(current_user):
    """Courses taught by the instructor"""
    try:
        return jsonify(course_service.get_instructor_courses(current_user['user_id'])), 200

    except Exception as e:
        logger.error(f"Error getting courses: {str(e)}")
        return jsonify({'error': 'Failed to get courses'}), 500


@bp.route('/<int:course_id>', methods=['GET'])
@require_auth
def get_course(course_id, current_user):
    """Get course details"""
    try:
        result = course_service.get_course(course_id)
        if result.get('error'):
            return jsonify({'error': result['error']}), result.get('status', 400)

        return jsonify(result), 200

    except Exception as e:
        logger.error(f"Error getting course: {str(e)}")
        return jsonify({'error': 'Failed to get course'}), 500


@bp.route('/<int:course_id>/enroll', methods=['POST'])
@require_auth
@require_student
def enroll(current_user, course_id):
    """Enroll the student in a course"""
    try:
        result = course_service.enroll_student(current_user['user_id'], course_id)
        if result.get('error'):
            return jsonify({'error': result['error']}), result.get('status', 400)

        return jsonify({'message': 'Enrolled successfully', 'course_id': course_id}), 201

    except Exception as e:
        logger.error(f"Error enrolling: {str(e)}")
        return jsonify({'error': 'Failed to enroll'}), 500
