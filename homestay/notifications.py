"""
HP Homestay Portal - Owner Notifications
SMS and email templates per workflow event, delivered after the transition commits
"""

import logging
import re

import requests
from django.core.mail import send_mail
from django.db import transaction
from django.utils import timezone

from .models import Notification, SystemConfiguration


logger = logging.getLogger(__name__)

NOTIFICATION_RULES_SETTING_KEY = 'comm_notification_rules'

PLACEHOLDER_PATTERN = re.compile(r'\{\{\s*([^}]+?)\s*\}\}')

SIGNATURE = '\n\n- Tourism Department'


# ============================================================================
# EVENT DEFINITIONS
# ============================================================================

NOTIFICATION_EVENTS = {
    'application_submitted': {
        'label': 'Application submitted',
        'sms_template': (
            'Your Himachal Tourism application {{APPLICATION_ID}} was submitted successfully. '
            'We will update you on the next steps.'
        ),
        'email_subject': 'Application {{APPLICATION_ID}} submitted',
        'email_body': (
            'Hello {{OWNER_NAME}},\n\nWe received your homestay application {{APPLICATION_ID}}. '
            'We will notify you as it moves through scrutiny and inspection.' + SIGNATURE
        ),
        'sms_enabled': False,
        'email_enabled': False,
    },
    'forwarded_to_dtdo': {
        'label': 'Forwarded to DTDO',
        'sms_template': (
            'Application {{APPLICATION_ID}} has moved to DTDO review for site inspection. '
            'Keep your documents handy.'
        ),
        'email_subject': 'Application {{APPLICATION_ID}} forwarded for DTDO review',
        'email_body': (
            'Hello {{OWNER_NAME}},\n\nYour application {{APPLICATION_ID}} cleared scrutiny and has been '
            'forwarded to the DTDO for field inspection. Please stay available for coordination.' + SIGNATURE
        ),
        'sms_enabled': False,
        'email_enabled': False,
    },
    'inspection_scheduled': {
        'label': 'Inspection scheduled',
        'sms_template': (
            'DTDO scheduled a site inspection for application {{APPLICATION_ID}} on {{INSPECTION_DATE}}. '
            'Please ensure availability.'
        ),
        'email_subject': 'Site inspection scheduled - Application {{APPLICATION_ID}}',
        'email_body': (
            'Hello {{OWNER_NAME}},\n\nA site inspection for application {{APPLICATION_ID}} is scheduled on '
            '{{INSPECTION_DATE}}. Kindly keep the property accessible and documents ready for verification.'
            + SIGNATURE
        ),
        'sms_enabled': False,
        'email_enabled': False,
    },
    'verified_for_payment': {
        'label': 'Verified for payment',
        'sms_template': (
            'Application {{APPLICATION_ID}} is verified for payment. Log in to complete the fee and '
            'download your certificate after approval.'
        ),
        'email_subject': 'Application {{APPLICATION_ID}} verified for payment',
        'email_body': (
            'Hello {{OWNER_NAME}},\n\nYour application {{APPLICATION_ID}} has been verified for payment. '
            'Please sign in to complete the fee so we can issue the certificate.' + SIGNATURE
        ),
        'sms_enabled': False,
        'email_enabled': False,
    },
    'da_send_back': {
        'label': 'DA send-back',
        'sms_template': (
            'Application {{APPLICATION_ID}} needs corrections. DA remarks: {{REMARKS}}. '
            'Please update and resubmit.'
        ),
        'email_subject': 'Corrections requested - Application {{APPLICATION_ID}}',
        'email_body': (
            'Hello {{OWNER_NAME}},\n\nOur Dealing Assistant reviewed application {{APPLICATION_ID}} and '
            'requested corrections.\n\nRemarks:\n{{REMARKS}}\n\nPlease sign in, update the form, and '
            'resubmit at the earliest.' + SIGNATURE
        ),
        'sms_enabled': True,
        'email_enabled': True,
    },
    'dtdo_revert': {
        'label': 'DTDO revert',
        'sms_template': (
            'DTDO returned application {{APPLICATION_ID}} for updates. Remarks: {{REMARKS}}. '
            'Please review and resubmit.'
        ),
        'email_subject': 'DTDO corrections - Application {{APPLICATION_ID}}',
        'email_body': (
            'Hello {{OWNER_NAME}},\n\nDuring district review we found items that need attention for '
            'application {{APPLICATION_ID}}.\n\nRemarks:\n{{REMARKS}}\n\nPlease update the application '
            'and resubmit so we can continue processing.' + SIGNATURE
        ),
        'sms_enabled': True,
        'email_enabled': True,
    },
    'dtdo_objection': {
        'label': 'DTDO objection raised',
        'sms_template': (
            'Inspection objections raised for application {{APPLICATION_ID}}. Remarks: {{REMARKS}}. '
            'Update the application to continue.'
        ),
        'email_subject': 'Inspection objections - Application {{APPLICATION_ID}}',
        'email_body': (
            'Hello {{OWNER_NAME}},\n\nAfter reviewing the inspection report for application '
            '{{APPLICATION_ID}}, the DTDO raised the following objections:\n\n{{REMARKS}}\n\nPlease sign '
            'in, address the feedback, and resubmit. Ignoring objections may lead to rejection.' + SIGNATURE
        ),
        'sms_enabled': True,
        'email_enabled': True,
    },
    'application_approved': {
        'label': 'Application approved',
        'sms_template': (
            'Application {{APPLICATION_ID}} is approved. Your registration certificate is available '
            'on the portal.'
        ),
        'email_subject': 'Application {{APPLICATION_ID}} approved',
        'email_body': (
            'Hello {{OWNER_NAME}},\n\nYour homestay application {{APPLICATION_ID}} has been approved. '
            'Sign in to download the registration certificate.' + SIGNATURE
        ),
        'sms_enabled': False,
        'email_enabled': False,
    },
    'application_rejected': {
        'label': 'Application rejected',
        'sms_template': 'Application {{APPLICATION_ID}} was rejected. Remarks: {{REMARKS}}.',
        'email_subject': 'Application {{APPLICATION_ID}} rejected',
        'email_body': (
            'Hello {{OWNER_NAME}},\n\nYour homestay application {{APPLICATION_ID}} was rejected.\n\n'
            'Remarks:\n{{REMARKS}}' + SIGNATURE
        ),
        'sms_enabled': False,
        'email_enabled': False,
    },
}


def render_template(template, variables):
    """Replace {{KEY}} placeholders; unknown keys render as empty text"""
    if not template:
        return ''

    def replace(match):
        value = variables.get(match.group(1).strip().upper())
        return '' if value is None else str(value)

    return PLACEHOLDER_PATTERN.sub(replace, template)


def format_date(value):
    if value is None:
        return ''
    if hasattr(value, 'tzinfo') and timezone.is_aware(value):
        value = timezone.localtime(value)
    return value.strftime('%d %b %Y')


def build_variables(application=None, owner=None, extras=None):
    owner = owner or (application.owner if application is not None else None)
    variables = {
        'APPLICATION_ID': '',
        'OWNER_NAME': '',
        'OWNER_MOBILE': '',
        'OWNER_EMAIL': '',
        'STATUS': '',
        'INSPECTION_DATE': '',
        'REMARKS': '',
    }

    if owner is not None:
        variables['OWNER_NAME'] = owner.display_name
        variables['OWNER_MOBILE'] = owner.mobile or ''
        variables['OWNER_EMAIL'] = owner.email or ''

    if application is not None:
        variables['APPLICATION_ID'] = application.application_number or str(application.pk)
        variables['OWNER_NAME'] = application.owner_name or variables['OWNER_NAME']
        variables['OWNER_MOBILE'] = application.owner_mobile or variables['OWNER_MOBILE']
        variables['OWNER_EMAIL'] = application.owner_email or variables['OWNER_EMAIL']
        variables['STATUS'] = application.status
        variables['INSPECTION_DATE'] = format_date(application.site_inspection_scheduled_date)

    for key, value in (extras or {}).items():
        if value is not None:
            variables[key.upper()] = value
    return variables


# ============================================================================
# RULES
# ============================================================================

def get_notification_rules():
    """Merge admin overrides from SystemConfiguration into the event defaults"""
    overrides = {}
    try:
        stored = SystemConfiguration.get_setting(NOTIFICATION_RULES_SETTING_KEY) or {}
    except ValueError as e:
        logger.error(f"Invalid notification rules setting, using defaults: {str(e)}")
        stored = {}

    for rule in stored.get('rules', []) if isinstance(stored, dict) else []:
        if isinstance(rule, dict) and rule.get('id') in NOTIFICATION_EVENTS:
            overrides[rule['id']] = rule

    rules = {}
    for event, definition in NOTIFICATION_EVENTS.items():
        override = overrides.get(event, {})
        rules[event] = {
            'sms_enabled': override.get('smsEnabled', definition['sms_enabled']),
            'sms_template': override.get('smsTemplate') or definition['sms_template'],
            'email_enabled': override.get('emailEnabled', definition['email_enabled']),
            'email_subject': override.get('emailSubject') or definition['email_subject'],
            'email_body': override.get('emailBody') or definition['email_body'],
        }
    return rules


# ============================================================================
# DELIVERY
# ============================================================================

class NotificationDispatcher:
    """Delivers rendered notifications over email and the SMS gateway"""

    def __init__(self, sms_gateway=None, from_email=None):
        self.sms_gateway = dict(sms_gateway or {})
        self.from_email = from_email

    def __repr__(self):
        return f"NotificationDispatcher(sms={'on' if self.sms_gateway.get('url') else 'off'})"

    def dispatch(self, event, application=None, owner=None, extras=None):
        """Send every enabled channel for an event; returns the Notification rows written"""
        if event not in NOTIFICATION_EVENTS:
            logger.warning(f"Unknown notification event {event}")
            return []

        rule = get_notification_rules()[event]
        recipient = owner or (application.owner if application is not None else None)
        if recipient is None:
            logger.warning(f"Notification {event} has no recipient")
            return []

        variables = build_variables(application, recipient, extras)
        sent = []

        if rule['sms_enabled'] and variables['OWNER_MOBILE']:
            record = self.send_sms(
                recipient, application, event,
                variables['OWNER_MOBILE'], render_template(rule['sms_template'], variables),
            )
            if record is not None:
                sent.append(record)

        if rule['email_enabled'] and variables['OWNER_EMAIL']:
            sent.append(self.send_email(
                recipient, application, event, variables['OWNER_EMAIL'],
                render_template(rule['email_subject'], variables),
                render_template(rule['email_body'], variables),
            ))
        return sent

    def send_email(self, recipient, application, event, address, subject, body):
        notification = Notification.objects.create(
            recipient=recipient,
            application=application,
            notification_type='email',
            event=event,
            subject=subject[:200],
            message=body,
        )
        try:
            send_mail(subject, body, self.from_email, [address], fail_silently=False)
            notification.status = 'sent'
            notification.sent_at = timezone.now()
        except Exception as e:
            logger.error(f"Failed to send {event} email to {address}: {str(e)}")
            notification.status = 'failed'
            notification.error_message = str(e)
        notification.save(update_fields=['status', 'sent_at', 'error_message'])
        return notification

    def send_sms(self, recipient, application, event, mobile, message):
        url = self.sms_gateway.get('url')
        if not url:
            logger.warning(f"SMS gateway not configured, skipping {event} SMS to {mobile}")
            return None

        notification = Notification.objects.create(
            recipient=recipient,
            application=application,
            notification_type='sms',
            event=event,
            subject=NOTIFICATION_EVENTS[event]['label'],
            message=message,
        )
        payload = {
            'username': self.sms_gateway.get('username', ''),
            'password': self.sms_gateway.get('password', ''),
            'senderid': self.sms_gateway.get('sender_id', ''),
            'templateid': self.sms_gateway.get('template_id', ''),
            'mobileno': mobile,
            'content': message,
        }
        try:
            response = requests.post(url, data=payload, timeout=self.sms_gateway.get('timeout', 10))
            response.raise_for_status()
            notification.status = 'sent'
            notification.sent_at = timezone.now()
        except requests.RequestException as e:
            logger.error(f"Failed to send {event} SMS to {mobile}: {str(e)}")
            notification.status = 'failed'
            notification.error_message = str(e)
        notification.save(update_fields=['status', 'sent_at', 'error_message'])
        return notification


def queue_notification(event, application=None, owner=None, extras=None, dispatcher=None):
    """
    Deliver after the surrounding transaction commits. Delivery failures are
    logged and recorded on the Notification row; they never reach the caller
    and are not retried.
    """
    if dispatcher is None:
        from .services import get_services
        dispatcher = get_services().notifier

    def deliver():
        try:
            dispatcher.dispatch(event, application=application, owner=owner, extras=extras)
        except Exception as e:
            logger.exception(f"Notification {event} for application {getattr(application, 'pk', None)} failed: {str(e)}")

    transaction.on_commit(deliver)


def create_in_app_notification(user, application, title, message, event=''):
    """Portal inbox message, no external delivery"""
    return Notification.objects.create(
        recipient=user,
        application=application,
        notification_type='system',
        event=event,
        subject=title[:200],
        message=message,
        status='sent',
        sent_at=timezone.now(),
    )
