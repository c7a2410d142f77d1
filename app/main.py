import os
from flask import Flask, jsonify
from config.config import config
from app.database import init_db
from app.utils.logger import get_logger

logger = get_logger(__name__)


def create_app(config_name=None):
    """Application factory"""
    config_name = config_name or os.environ.get('FLASK_ENV', 'default')
    app = Flask(__name__)
    app.config.from_object(config.get(config_name, config['default']))

    init_db()

    from app.routes import auth, courses, mentorship, notifications
    app.register_blueprint(auth.bp, url_prefix='/api/auth')
    app.register_blueprint(courses.bp, url_prefix='/api/courses')
    app.register_blueprint(mentorship.bp, url_prefix='/api/mentorship')
    app.register_blueprint(notifications.bp, url_prefix='/api/notifications')

    @app.route('/api/health', methods=['GET'])
    def health():
        return jsonify({'status': 'ok'}), 200

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({'error': 'Resource not found'}), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({'error': 'Method not allowed'}), 405

    @app.errorhandler(500)
    def internal_error(error):
        logger.error(f"Unhandled server error: {str(error)}")
        return jsonify({'error': 'Internal server error'}), 500

    logger.info(f"Mentorship API started with '{config_name}' configuration")
    return app
