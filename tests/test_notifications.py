"""
Tests for owner notifications over email, SMS and the portal inbox
"""

import smtplib

import pytest
import requests

from homestay.models import Notification, SystemConfiguration
from homestay.notifications import (
    NOTIFICATION_RULES_SETTING_KEY, NotificationDispatcher, render_template, build_variables,
    get_notification_rules, queue_notification, create_in_app_notification,
)
from homestay.transitions import perform_transition


class FakeResponse:

    def __init__(self, status_code=200):
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Server Error")


@pytest.fixture
def dispatcher():
    return NotificationDispatcher(from_email='noreply@hptourism.gov.in')


@pytest.fixture
def sms_dispatcher():
    return NotificationDispatcher(
        sms_gateway={'url': 'https://sms.example.test/send', 'username': 'hptour', 'sender_id': 'HPTOUR'},
        from_email='noreply@hptourism.gov.in',
    )


class TestTemplates:

    def test_render_template(self):
        assert render_template('Hi {{ OWNER_NAME }}, {{missing}}done', {'OWNER_NAME': 'Asha'}) == 'Hi Asha, done'
        assert render_template('', {'A': 1}) == ''

    def test_extras_are_uppercased(self):
        variables = build_variables(extras={'remarks': 'Fix the bill', 'inspection_date': None})
        assert variables['REMARKS'] == 'Fix the bill'
        assert variables['INSPECTION_DATE'] == ''


@pytest.mark.django_db
class TestRules:

    def test_defaults(self):
        rules = get_notification_rules()
        assert rules['da_send_back']['sms_enabled'] is True
        assert rules['application_submitted']['email_enabled'] is False

    def test_admin_overrides(self):
        SystemConfiguration.set_json(NOTIFICATION_RULES_SETTING_KEY, {'rules': [
            {'id': 'application_submitted', 'emailEnabled': True, 'emailSubject': 'Got {{APPLICATION_ID}}'},
            {'id': 'not_an_event', 'smsEnabled': True},
        ]})
        rules = get_notification_rules()
        assert rules['application_submitted']['email_enabled'] is True
        assert rules['application_submitted']['email_subject'] == 'Got {{APPLICATION_ID}}'
        assert 'not_an_event' not in rules

    def test_broken_setting_falls_back(self):
        SystemConfiguration.objects.create(key=NOTIFICATION_RULES_SETTING_KEY, value='{not json', data_type='json')
        assert get_notification_rules()['dtdo_revert']['email_enabled'] is True


@pytest.mark.django_db
class TestDispatch:

    def test_email(self, dispatcher, submitted_application, mailoutbox):
        sent = dispatcher.dispatch('da_send_back', submitted_application, extras={'remarks': 'Fix the water bill'})

        assert len(sent) == 1
        assert sent[0].status == 'sent'
        assert len(mailoutbox) == 1
        assert mailoutbox[0].subject == f"Corrections requested - Application {submitted_application.application_number}"
        assert 'Fix the water bill' in mailoutbox[0].body
        assert mailoutbox[0].to == [submitted_application.owner_email]

    def test_disabled_event(self, dispatcher, submitted_application, mailoutbox):
        assert dispatcher.dispatch('application_submitted', submitted_application) == []
        assert mailoutbox == []

    def test_unknown_event(self, dispatcher, submitted_application):
        assert dispatcher.dispatch('no_such_event', submitted_application) == []

    def test_email_failure_is_recorded(self, dispatcher, submitted_application, monkeypatch):
        def broken_send_mail(*args, **kwargs):
            raise smtplib.SMTPException('relay refused')

        monkeypatch.setattr('homestay.notifications.send_mail', broken_send_mail)
        sent = dispatcher.dispatch('dtdo_revert', submitted_application, extras={'remarks': 'Resubmit photos'})

        assert sent[0].status == 'failed'
        assert 'relay refused' in sent[0].error_message

    def test_sms(self, sms_dispatcher, submitted_application, monkeypatch):
        calls = []

        def fake_post(url, data=None, timeout=None):
            calls.append((url, data))
            return FakeResponse()

        monkeypatch.setattr('homestay.notifications.requests.post', fake_post)
        monkeypatch.setattr('homestay.notifications.send_mail', lambda *args, **kwargs: 1)
        sent = sms_dispatcher.dispatch('dtdo_objection', submitted_application, extras={'remarks': 'No fire exit'})

        sms = [n for n in sent if n.notification_type == 'sms']
        assert len(sms) == 1 and sms[0].status == 'sent'
        url, data = calls[0]
        assert url == 'https://sms.example.test/send'
        assert data['mobileno'] == submitted_application.owner_mobile
        assert 'No fire exit' in data['content']

    def test_sms_gateway_error(self, sms_dispatcher, submitted_application, monkeypatch):
        monkeypatch.setattr(
            'homestay.notifications.requests.post', lambda *args, **kwargs: FakeResponse(503),
        )
        monkeypatch.setattr('homestay.notifications.send_mail', lambda *args, **kwargs: 1)
        sent = sms_dispatcher.dispatch('da_send_back', submitted_application, extras={'remarks': 'x'})

        sms = Notification.objects.get(notification_type='sms')
        assert sms.status == 'failed'
        assert '503' in sms.error_message
        assert len(sent) == 2

    def test_sms_skipped_without_gateway(self, dispatcher, submitted_application, mailoutbox):
        dispatcher.dispatch('da_send_back', submitted_application, extras={'remarks': 'x'})
        assert not Notification.objects.filter(notification_type='sms').exists()


@pytest.mark.django_db
class TestDeliveryAfterCommit:

    def test_transition_notifies_owner(self, submitted_application, da, mailoutbox,
                                       django_capture_on_commit_callbacks):
        application = perform_transition(submitted_application, da, 'start_scrutiny')
        with django_capture_on_commit_callbacks(execute=True):
            perform_transition(application, da, 'da_send_back', remarks='Upload the water bill')

        assert len(mailoutbox) == 1
        assert 'Upload the water bill' in mailoutbox[0].body
        assert Notification.objects.filter(event='da_send_back', notification_type='email', status='sent').exists()

    def test_nothing_is_sent_before_commit(self, submitted_application, da, mailoutbox,
                                           django_capture_on_commit_callbacks):
        application = perform_transition(submitted_application, da, 'start_scrutiny')
        with django_capture_on_commit_callbacks() as callbacks:
            perform_transition(application, da, 'da_send_back', remarks='Upload the water bill')

        assert len(callbacks) == 1
        assert mailoutbox == []

    def test_delivery_errors_do_not_escape(self, submitted_application, django_capture_on_commit_callbacks):
        class BrokenDispatcher:
            def dispatch(self, *args, **kwargs):
                raise RuntimeError('template store offline')

        with django_capture_on_commit_callbacks(execute=True):
            queue_notification('da_send_back', submitted_application, dispatcher=BrokenDispatcher())

    def test_in_app_notification(self, submitted_application, da):
        notification = create_in_app_notification(da, submitted_application, 'New Inspection Assigned', 'Visit on Monday')
        assert notification.notification_type == 'system'
        assert notification.status == 'sent'
        assert notification.sent_at is not None
