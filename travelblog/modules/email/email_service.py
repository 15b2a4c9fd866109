"""
Email Service Module
====================

Email service supporting SMTP (e.g. Gmail), Resend and Amazon SES.
Provider is selected via EMAIL_PROVIDER config ('smtp', 'resend', or 'ses').

Contact submissions produce two independent emails: an admin notification
with every submitted field and a confirmation to the submitter. Failures are
classified (authentication, network, invalid-recipient, provider), logged,
and reported as False -- they are never raised to the caller.
"""

import logging
import re
import smtplib
import socket
import time
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Any, Dict, List, Optional, Union

import boto3
import requests
import resend
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError, ConnectTimeoutError, EndpointConnectionError, ReadTimeoutError
from markupsafe import escape

from travelblog.core.logging_service import db_log

logger = logging.getLogger(__name__)

# Rejects consecutive dots, leading/trailing dots in local part
_VALID_EMAIL = re.compile(r'^[a-zA-Z0-9_%+-]+(\.[a-zA-Z0-9_%+-]+)*@[a-zA-Z0-9-]+(\.[a-zA-Z0-9-]+)*\.[a-zA-Z]{2,}$')

REASON_AUTHENTICATION = 'authentication'
REASON_NETWORK = 'network'
REASON_INVALID_RECIPIENT = 'invalid-recipient'
REASON_PROVIDER = 'provider'

_SES_AUTH_CODES = {'InvalidClientTokenId', 'SignatureDoesNotMatch', 'AccessDenied',
                   'UnrecognizedClientException', 'AccessDeniedException'}
_SES_RECIPIENT_CODES = {'MessageRejected', 'MailFromDomainNotVerified', 'InvalidParameterValue'}

SUBMISSION_FIELDS = [
    ('firstName', 'First Name'),
    ('lastName', 'Last Name'),
    ('email', 'Email'),
    ('phone', 'Phone'),
    ('address', 'Address'),
    ('interests', 'Areas of Interest'),
    ('experience', 'Experience'),
    ('message', 'Message'),
    ('hearAboutUs', 'How did you hear about us'),
]


class EmailDeliveryError(Exception):
    """A send attempt failed; reason is one of the REASON_* constants."""

    def __init__(self, reason, message):
        super().__init__(message)
        self.reason = reason


def classify_error(error):
    """Map a provider exception onto a failure reason."""
    if isinstance(error, EmailDeliveryError):
        return error.reason
    if isinstance(error, smtplib.SMTPAuthenticationError):
        return REASON_AUTHENTICATION
    if isinstance(error, (smtplib.SMTPRecipientsRefused, smtplib.SMTPSenderRefused)):
        return REASON_INVALID_RECIPIENT
    if isinstance(error, (smtplib.SMTPServerDisconnected, smtplib.SMTPConnectError,
                          socket.timeout, ConnectionError, TimeoutError)):
        return REASON_NETWORK
    if isinstance(error, (requests.ConnectionError, requests.Timeout)):
        return REASON_NETWORK
    if isinstance(error, (EndpointConnectionError, ConnectTimeoutError, ReadTimeoutError)):
        return REASON_NETWORK
    if isinstance(error, ClientError):
        code = error.response.get('Error', {}).get('Code', '')
        if code in _SES_AUTH_CODES:
            return REASON_AUTHENTICATION
        if code in _SES_RECIPIENT_CODES:
            return REASON_INVALID_RECIPIENT
        return REASON_PROVIDER
    if isinstance(error, OSError):
        return REASON_NETWORK

    # resend raises its own error classes carrying an HTTP status code
    code = getattr(error, 'code', None)
    if code in (401, 403):
        return REASON_AUTHENTICATION
    if code == 422:
        return REASON_INVALID_RECIPIENT
    return REASON_PROVIDER


class EmailService:
    """
    Configurable email service.

    Configuration (set in Flask app.config):
        EMAIL_PROVIDER: 'smtp' (default), 'resend', or 'ses'
        EMAIL_ADDRESS: Sender address, also the SMTP login
        EMAIL_PASSWORD: SMTP password/app password (required if provider is 'smtp')
        EMAIL_HOST / EMAIL_PORT: SMTP server (default smtp.gmail.com:587)
        RESEND_API_KEY: Resend API key (required if provider is 'resend')
        AWS_REGION: AWS region for SES
        EMAIL_BRAND_NAME, EMAIL_WEBSITE_URL: Branding used in templates
        EMAIL_ADMIN_EMAIL: Where admin notifications go (default: sender)
        EMAIL_REVIEW_WINDOW: Response time promised to submitters
        OUTBOUND_TIMEOUT / OUTBOUND_RETRIES: Per-attempt timeout and network retries
    """

    def __init__(self, app=None):
        self.provider = 'smtp'
        self.sender_email = None
        self.admin_email = None
        self.api_key = None
        self.ses_client = None
        self.smtp_host = 'smtp.gmail.com'
        self.smtp_port = 587
        self.smtp_password = None
        self.brand_name = 'The Conclave Academy Blog'
        self.website_url = ''
        self.review_window = '3-5 business days'
        self.timeout = 15
        self.retries = 2

        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        """Initialize email service with Flask app configuration"""
        self.provider = (app.config.get('EMAIL_PROVIDER') or 'smtp').lower()
        logger.info(f"Initializing email service (provider: {self.provider})")

        self.sender_email = app.config.get('EMAIL_ADDRESS')
        self.admin_email = app.config.get('EMAIL_ADMIN_EMAIL') or self.sender_email
        self.brand_name = app.config.get('EMAIL_BRAND_NAME', self.brand_name)
        self.website_url = app.config.get('EMAIL_WEBSITE_URL', self.website_url)
        self.review_window = app.config.get('EMAIL_REVIEW_WINDOW', self.review_window)
        self.timeout = float(app.config.get('OUTBOUND_TIMEOUT', self.timeout))
        self.retries = int(app.config.get('OUTBOUND_RETRIES', self.retries))

        if self.provider == 'ses':
            self._init_ses(app)
        elif self.provider == 'resend':
            self._init_resend(app)
        else:
            self._init_smtp(app)

    def _init_resend(self, app):
        self.api_key = app.config.get('RESEND_API_KEY')
        if not self.api_key:
            logger.warning("RESEND_API_KEY not configured - email sending disabled")

    def _init_ses(self, app):
        aws_region = app.config.get('AWS_REGION', 'eu-west-1')
        try:
            self.ses_client = boto3.client(
                'ses',
                region_name=aws_region,
                config=BotoConfig(
                    connect_timeout=self.timeout,
                    read_timeout=self.timeout,
                    retries={'max_attempts': 1},
                ),
            )
            logger.info(f"SES client initialized (region: {aws_region})")
        except BotoCoreError as e:
            logger.error(f"Failed to initialize SES client: {e}")

    def _init_smtp(self, app):
        self.smtp_host = app.config.get('EMAIL_HOST', self.smtp_host)
        self.smtp_port = int(app.config.get('EMAIL_PORT', self.smtp_port))
        self.smtp_password = app.config.get('EMAIL_PASSWORD')
        if not self.smtp_password:
            logger.warning("EMAIL_PASSWORD not configured - SMTP email sending disabled")
            return
        logger.info(f"SMTP configured: {self.smtp_host}:{self.smtp_port}")

    # ==================== Sending ====================

    def send_email(self, to: Union[str, List[str]], subject: str, html_body: str,
                   text_body: Optional[str] = None) -> bool:
        """
        Send one email per recipient via the configured provider.

        Network failures are retried up to OUTBOUND_RETRIES times; anything
        else fails immediately.

        Returns:
            bool: True if every recipient was sent to, False otherwise
        """
        recipients = [to] if isinstance(to, str) else list(to or [])
        if not recipients:
            logger.error("No recipients provided")
            return False
        if not self.sender_email:
            self._log_failure(recipients, subject, REASON_AUTHENTICATION, 'Sender email not configured')
            return False

        all_sent = True
        for recipient in recipients:
            if not _VALID_EMAIL.match(recipient or ''):
                self._log_failure([recipient], subject, REASON_INVALID_RECIPIENT, 'Invalid email address')
                all_sent = False
                continue
            try:
                self._send_with_retry(recipient, subject, html_body, text_body)
                logger.info(f"Email sent to {recipient}: {subject}")
            except Exception as e:
                self._log_failure([recipient], subject, classify_error(e), str(e))
                all_sent = False
        return all_sent

    def _send_with_retry(self, recipient, subject, html_body, text_body):
        attempt = 0
        while True:
            try:
                return self._deliver(recipient, subject, html_body, text_body)
            except Exception as e:
                if classify_error(e) != REASON_NETWORK or attempt >= self.retries:
                    raise
                attempt += 1
                logger.warning(f"Network error sending to {recipient} (attempt {attempt}): {e}")
                time.sleep(min(2 ** (attempt - 1), 5))

    def _deliver(self, recipient, subject, html_body, text_body):
        if self.provider == 'ses':
            return self._send_via_ses(recipient, subject, html_body, text_body)
        if self.provider == 'resend':
            return self._send_via_resend(recipient, subject, html_body, text_body)
        return self._send_via_smtp(recipient, subject, html_body, text_body)

    def _send_via_resend(self, recipient, subject, html_body, text_body=None):
        if not self.api_key:
            raise EmailDeliveryError(REASON_AUTHENTICATION, 'Resend API key not configured')

        email_params = {
            'from': self.sender_email,
            'to': recipient,
            'subject': subject,
            'html': html_body,
        }
        if text_body:
            email_params['text'] = text_body

        # the SDK reads its key from module state shared by every app in the process
        resend.api_key = self.api_key
        r = resend.Emails.send(email_params)
        if not r or not r.get('id'):
            raise EmailDeliveryError(REASON_PROVIDER, f"Resend returned no id: {r}")
        logger.debug(f"Resend accepted email to {recipient}, ID: {r['id']}")

    def _send_via_ses(self, recipient, subject, html_body, text_body=None):
        if not self.ses_client:
            raise EmailDeliveryError(REASON_PROVIDER, 'SES client not initialized')

        body = {'Html': {'Charset': 'UTF-8', 'Data': html_body}}
        if text_body:
            body['Text'] = {'Charset': 'UTF-8', 'Data': text_body}

        response = self.ses_client.send_email(
            Source=self.sender_email,
            Destination={'ToAddresses': [recipient]},
            Message={
                'Subject': {'Charset': 'UTF-8', 'Data': subject},
                'Body': body,
            },
        )
        logger.debug(f"SES accepted email to {recipient}, MessageId: {response.get('MessageId', '')}")

    def _send_via_smtp(self, recipient, subject, html_body, text_body=None):
        if not self.smtp_password:
            raise EmailDeliveryError(REASON_AUTHENTICATION, 'SMTP password not configured')

        msg = MIMEMultipart('alternative')
        msg['From'] = self.sender_email
        msg['To'] = recipient
        msg['Subject'] = subject
        if text_body:
            msg.attach(MIMEText(text_body, 'plain', 'utf-8'))
        msg.attach(MIMEText(html_body, 'html', 'utf-8'))

        with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=self.timeout) as server:
            server.starttls()
            server.login(self.sender_email, self.smtp_password)
            server.send_message(msg)

    def _log_failure(self, recipients, subject, reason, message):
        logger.error(f"Email to {', '.join(map(str, recipients))} failed ({reason}): {message}")
        db_log('error', 'email', f"Email delivery failed ({reason})", {
            'recipients': recipients,
            'subject': subject,
            'reason': reason,
            'error': message,
        })

    # ==================== Submission Emails ====================

    @staticmethod
    def _field_value(form, key):
        value = form.get(key)
        if isinstance(value, (list, tuple)):
            value = ', '.join(str(v) for v in value)
        return value if value not in (None, '') else 'N/A'

    def _full_name(self, form):
        return f"{form.get('firstName', '')} {form.get('lastName', '')}".strip()

    def send_submission_admin_notification(self, form: Dict[str, Any]) -> bool:
        """Send every submitted field to the admin inbox"""
        if not self.admin_email:
            logger.warning("Admin email not configured - skipping admin notification")
            return False

        subject = f"New Write For Us Submission from {self._full_name(form)}"
        rows = [(label, self._field_value(form, key)) for key, label in SUBMISSION_FIELDS]

        html_rows = ''.join(
            f"<p><strong>{escape(label)}:</strong> {escape(value)}</p>" for label, value in rows
        )
        html_body = f"""
        <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
            <h2 style="color: #2c3e50;">New Write For Us Submission</h2>

            <div style="background: #f8f9fa; padding: 20px; border-radius: 5px; margin: 20px 0;">
                {html_rows}
            </div>

            <p style="color: #6c757d; font-size: 12px;">
                This is an automated notification from {escape(self.brand_name)}.
            </p>
        </div>
        """

        text_lines = '\n'.join(f"- {label}: {value}" for label, value in rows)
        text_body = f"""
NEW WRITE FOR US SUBMISSION

{text_lines}

---
{self.brand_name}
        """

        return self.send_email(self.admin_email, subject, html_body, text_body)

    def send_submission_confirmation(self, form: Dict[str, Any]) -> bool:
        """Thank the submitter and summarize what they sent"""
        first_name = form.get('firstName') or 'there'
        interests = self._field_value(form, 'interests')
        experience = self._field_value(form, 'experience')

        subject = f"Thank you for your interest in writing for {self.brand_name}"

        html_body = f"""
        <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
            <h2 style="color: #2c3e50;">Thank You, {escape(first_name)}!</h2>

            <p>We have received your application to write for {escape(self.brand_name)}.</p>

            <div style="background: #f8f9fa; padding: 20px; border-radius: 5px; margin: 20px 0;">
                <h3>Your Submission Details:</h3>
                <p><strong>Areas of Interest:</strong> {escape(interests)}</p>
                <p><strong>Experience:</strong> {escape(experience)}</p>
            </div>

            <p>Our team will review your submission and get back to you within
            {escape(self.review_window)}.</p>

            <p>Best regards,<br>The {escape(self.brand_name)} Team</p>
        </div>
        """

        text_body = f"""
Thank You, {first_name}!

We have received your application to write for {self.brand_name}.

Your Submission Details:
- Areas of Interest: {interests}
- Experience: {experience}

Our team will review your submission and get back to you within {self.review_window}.

Best regards,
The {self.brand_name} Team
        """

        return self.send_email(form.get('email'), subject, html_body, text_body)

    def dispatch_submission_emails(self, form: Dict[str, Any]) -> Dict[str, bool]:
        """
        Send the admin notification and the submitter confirmation.

        Each send is attempted regardless of how the other went.
        """
        results = {}
        for key, sender in (('admin', self.send_submission_admin_notification),
                            ('user', self.send_submission_confirmation)):
            try:
                results[key] = sender(form)
            except Exception as e:
                logger.error(f"Unexpected error building {key} submission email: {e}")
                results[key] = False
        logger.info(f"Submission emails dispatched: {results}")
        return results
