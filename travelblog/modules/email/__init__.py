"""
Email Module
============

Transactional email for contact submissions over SMTP, Resend or Amazon SES.
"""

from .email_service import EmailDeliveryError, EmailService

__all__ = ['EmailDeliveryError', 'EmailService']
