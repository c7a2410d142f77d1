from typing import Dict
from app.database import DatabaseManager, get_db
from app.models import User
from app.models.user import UserRole
from app.utils.security import hash_password, verify_password, generate_token
from app.utils.logger import get_logger

logger = get_logger(__name__)


class AuthService:
    """Service for handling authentication"""

    def __init__(self):
        self.user_db = DatabaseManager(User)

    def register_user(self, data: Dict) -> Dict:
        """Register a new user"""
        try:
            existing_user = self.user_db.get_by(email=data['email'].lower())
            if existing_user:
                return {'error': 'Email already registered'}

            user = self.user_db.create(
                name=data['name'].strip(),
                email=data['email'].lower(),
                password_hash=hash_password(data['password']),
                role=UserRole[data['role'].upper()],
                is_active=True
            )

            logger.info(f"Registered {user.role.value} {user.id}")
            return {'user_id': user.id, 'success': True}

        except Exception as e:
            logger.error(f"Registration error: {str(e)}")
            return {'error': 'Registration failed'}

    def authenticate_user(self, email: str, password: str) -> Dict:
        """Authenticate user and return token"""
        try:
            with get_db() as db:
                user = db.query(User).filter(User.email == email.lower()).first()

                if not user or not verify_password(password, user.password_hash):
                    return {'error': 'Invalid credentials'}

                if not user.is_active:
                    return {'error': 'Account not activated'}

                return {
                    'access_token': self.issue_token(user),
                    'user': self._format_user(user)
                }

        except Exception as e:
            logger.error(f"Authentication error: {str(e)}")
            return {'error': 'Authentication failed'}

    def get_user(self, user_id: int) -> Dict:
        user = self.user_db.get(user_id)
        if not user:
            return {'error': 'User not found'}
        return self._format_user(user)

    @staticmethod
    def issue_token(user: User) -> str:
        return generate_token({
            'user_id': user.id,
            'email': user.email,
            'role': user.role.value
        })

    def _format_user(self, user: User) -> Dict:
        return {
            'id': user.id,
            'name': user.name,
            'email': user.email,
            'role': user.role.value
        }
