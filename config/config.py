import os
from dotenv import load_dotenv

load_dotenv()


def _env_flag(name, default='false'):
    return os.environ.get(name, default).lower() in ('1', 'true', 'yes')


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production'
    DATABASE_URL = os.environ.get('DATABASE_URL') or 'sqlite:///mentorship.db'
    SQLALCHEMY_DATABASE_URI = DATABASE_URL
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # API Keys
    SENDGRID_API_KEY = os.environ.get('SENDGRID_API_KEY')
    SENDGRID_FROM_EMAIL = os.environ.get('SENDGRID_FROM_EMAIL', 'noreply@mentorship.local')

    # Application Settings
    APP_URL = os.environ.get('APP_URL', 'http://localhost:5000')
    NOTIFICATION_EMAILS_ENABLED = _env_flag('NOTIFICATION_EMAILS_ENABLED')
    NOTIFICATION_PAGE_SIZE_MAX = 50

    # Mentorship scheduling policy
    SESSION_DURATIONS_MINUTES = (15, 30)
    SLOT_GRANULARITY_MINUTES = int(os.environ.get('SLOT_GRANULARITY_MINUTES', '5'))
    BOOKING_LOOKAHEAD_HOURS = int(os.environ.get('BOOKING_LOOKAHEAD_HOURS', '72'))
    CANCELLATION_CUTOFF_HOURS = int(os.environ.get('CANCELLATION_CUTOFF_HOURS', '12'))

    # Token Settings
    ACCESS_TOKEN_EXPIRE_MINUTES = int(os.environ.get('ACCESS_TOKEN_EXPIRE_MINUTES', str(60 * 24)))

    # Logging
    LOG_FILE = os.environ.get('LOG_FILE', 'logs/mentorship.log')
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')


class DevelopmentConfig(Config):
    DEBUG = True
    TESTING = False


class TestingConfig(Config):
    DEBUG = True
    TESTING = True
    NOTIFICATION_EMAILS_ENABLED = False


class ProductionConfig(Config):
    DEBUG = False
    TESTING = False


config = {
    'development': DevelopmentConfig,
    'testing': TestingConfig,
    'production': ProductionConfig,
    'default': DevelopmentConfig
}
