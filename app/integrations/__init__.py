from .sendgrid_client import SendGridClient

__all__ = ['SendGridClient']
