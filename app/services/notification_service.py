from datetime import datetime
from typing import Dict, Iterable, Optional
from app.database import get_db
from app.models import Notification, User
from app.models.notification import NotificationType
from app.integrations import SendGridClient
from config.config import Config
from app.utils.logger import get_logger

logger = get_logger(__name__)


class NotificationService:
    """In-app notification sink with optional email copies.

    ``notify`` and ``notify_many`` are fire-and-forget: they log failures
    and never raise, so the operation that triggered them still succeeds.
    """

    def __init__(self, email_client: Optional[SendGridClient] = None):
        self.sendgrid = email_client or SendGridClient()

    def notify(self, user_id: int, type: NotificationType, title: str, message: str,
               link: Optional[str] = None, course_id: Optional[int] = None) -> Optional[int]:
        """Create one notification; returns its id, or None on failure"""
        try:
            with get_db() as db:
                notification = Notification(
                    user_id=user_id,
                    type=type,
                    title=title,
                    message=message,
                    link=link,
                    course_id=course_id
                )
                db.add(notification)
                db.flush()
                notification_id = notification.id

                user = db.query(User).filter_by(id=user_id).first()
                self._maybe_email(user, title, message, link)

            return notification_id

        except Exception as e:
            logger.error(f"Error creating {type.value} notification for user {user_id}: {str(e)}")
            return None

    def notify_many(self, messages: Iterable[Dict]) -> int:
        """Create a batch of notifications in one transaction; returns how many were stored.

        Each message is a dict with user_id, type, title, message and optional
        link / course_id.
        """
        messages = list(messages)
        if not messages:
            return 0

        try:
            with get_db() as db:
                for payload in messages:
                    db.add(Notification(
                        user_id=payload['user_id'],
                        type=payload['type'],
                        title=payload['title'],
                        message=payload['message'],
                        link=payload.get('link'),
                        course_id=payload.get('course_id')
                    ))

                if self._emails_enabled():
                    user_ids = [payload['user_id'] for payload in messages]
                    users = {u.id: u for u in db.query(User).filter(User.id.in_(user_ids)).all()}
                    for payload in messages:
                        self._maybe_email(users.get(payload['user_id']), payload['title'],
                                          payload['message'], payload.get('link'))

            logger.info(f"Stored {len(messages)} notifications")
            return len(messages)

        except Exception as e:
            logger.error(f"Error creating notification batch: {str(e)}")
            return 0

    def get_notifications(self, user_id: int, unread_only: bool = False,
                          page: int = 1, limit: int = 20) -> Dict:
        """Paginated notifications for a user, newest first"""
        try:
            page_size = min(max(limit, 1), Config.NOTIFICATION_PAGE_SIZE_MAX)
            current_page = max(page, 1)

            with get_db() as db:
                query = db.query(Notification).filter(Notification.user_id == user_id)
                if unread_only:
                    query = query.filter(Notification.is_read == False)  # noqa: E712

                total = query.count()
                notifications = query.order_by(
                    Notification.created_at.desc(), Notification.id.desc()
                ).offset((current_page - 1) * page_size).limit(page_size).all()

                return {
                    'notifications': [self._format_notification(n) for n in notifications],
                    'total': total,
                    'page': current_page,
                    'pageSize': page_size,
                    'totalPages': (total + page_size - 1) // page_size
                }

        except Exception as e:
            logger.error(f"Error getting notifications: {str(e)}")
            return {'error': 'Failed to get notifications', 'status': 500}

    def get_unread_count(self, user_id: int) -> Dict:
        try:
            with get_db() as db:
                count = db.query(Notification).filter(
                    Notification.user_id == user_id,
                    Notification.is_read == False  # noqa: E712
                ).count()
                return {'count': count}

        except Exception as e:
            logger.error(f"Error counting notifications: {str(e)}")
            return {'error': 'Failed to count notifications', 'status': 500}

    def mark_as_read(self, user_id: int, notification_id: int) -> Dict:
        try:
            with get_db() as db:
                notification = db.query(Notification).filter_by(
                    id=notification_id, user_id=user_id
                ).first()

                if not notification:
                    return {'error': 'Notification not found', 'status': 404}

                if not notification.is_read:
                    notification.is_read = True
                    notification.read_at = datetime.now()

                return self._format_notification(notification)

        except Exception as e:
            logger.error(f"Error marking notification as read: {str(e)}")
            return {'error': 'Failed to update notification', 'status': 500}

    def mark_all_as_read(self, user_id: int) -> Dict:
        try:
            with get_db() as db:
                updated = db.query(Notification).filter(
                    Notification.user_id == user_id,
                    Notification.is_read == False  # noqa: E712
                ).update({'is_read': True, 'read_at': datetime.now()}, synchronize_session=False)
                return {'updated': updated}

        except Exception as e:
            logger.error(f"Error marking notifications as read: {str(e)}")
            return {'error': 'Failed to update notifications', 'status': 500}

    def _emails_enabled(self) -> bool:
        return Config.NOTIFICATION_EMAILS_ENABLED and self.sendgrid.is_configured

    def _maybe_email(self, user: Optional[User], title: str, message: str, link: Optional[str]):
        """Send an email copy when enabled and the user opted in"""
        if not user or not self._emails_enabled() or not user.email_notifications:
            return
        try:
            self.sendgrid.send_notification_email(user.email, user.name, title, message, link)
        except Exception as e:
            logger.error(f"Error emailing notification to user {user.id}: {str(e)}")

    def _format_notification(self, notification: Notification) -> Dict:
        return {
            'id': notification.id,
            'user': notification.user_id,
            'type': notification.type.value,
            'title': notification.title,
            'message': notification.message,
            'link': notification.link,
            'course': notification.course_id,
            'isRead': notification.is_read,
            'readAt': notification.read_at.isoformat() if notification.read_at else None,
            'createdAt': notification.created_at.isoformat() if notification.created_at else None
        }
