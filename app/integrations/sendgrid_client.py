import sendgrid
from sendgrid.helpers.mail import Mail, Email, To, Content
from typing import Optional, Dict
from config.config import Config
from app.utils.logger import get_logger

logger = get_logger(__name__)


class SendGridClient:
    """Wrapper for SendGrid email operations"""

    def __init__(self):
        self.api_key = Config.SENDGRID_API_KEY
        self.from_email = Config.SENDGRID_FROM_EMAIL

        if self.api_key:
            self.client = sendgrid.SendGridAPIClient(api_key=self.api_key)
        else:
            self.client = None
            logger.info("SendGrid API key not configured; email delivery disabled")

    @property
    def is_configured(self) -> bool:
        return self.client is not None

    def send_email(self, to_email: str, subject: str, html_content: str,
                   plain_content: str = None) -> Optional[Dict]:
        """Send email via SendGrid"""
        if not self.client:
            logger.error("SendGrid client not initialized")
            return None

        try:
            message = Mail(
                from_email=Email(self.from_email, "Mentorship"),
                to_emails=To(to_email),
                subject=subject,
                html_content=Content("text/html", html_content)
            )

            if plain_content:
                message.plain_text_content = Content("text/plain", plain_content)

            response = self.client.send(message)

            return {
                'status_code': response.status_code,
                'message_id': response.headers.get('X-Message-Id')
            }
        except Exception as e:
            logger.error(f"Error sending email to {to_email}: {str(e)}")
            return None

    def send_notification_email(self, to_email: str, name: str, title: str,
                                message: str, link: Optional[str] = None) -> Optional[Dict]:
        """Email a copy of an in-app notification"""
        button = ''
        if link:
            url = f"{Config.APP_URL}{link}"
            button = f"""
                <p style="margin: 30px 0;">
                    <a href="{url}"
                       style="background-color: #2196F3; color: white; padding: 14px 28px;
                              text-decoration: none; border-radius: 4px; display: inline-block;">
                        Open
                    </a>
                </p>"""

        html_content = f"""
        <html>
            <body style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
                <h2>{title}</h2>
                <p>Hi {name},</p>
                <p>{message}</p>{button}
            </body>
        </html>
        """
        plain_content = f"Hi {name},\n\n{message}\n"
        if link:
            plain_content += f"\n{Config.APP_URL}{link}\n"

        return self.send_email(to_email, title, html_content, plain_content)
