"""
HP Homestay Portal - Process Services
Collaborators built once when the app registry is ready
"""

import logging

from django.apps import apps
from django.conf import settings

from .districts import DistrictMatchConfig
from .notifications import NotificationDispatcher


logger = logging.getLogger(__name__)


class PortalServices:
    """Holds the district matcher configuration and the notification dispatcher"""

    def __init__(self, district_config, notifier):
        self.district_config = district_config
        self.notifier = notifier

    def __repr__(self):
        return f"PortalServices({self.district_config!r}, {self.notifier!r})"


def build_services():
    district_config = DistrictMatchConfig(
        stop_words=getattr(settings, 'HOMESTAY_DISTRICT_STOP_WORDS', None),
        min_token_length=getattr(settings, 'HOMESTAY_DISTRICT_MIN_TOKEN_LENGTH', 3),
    )
    notifier = NotificationDispatcher(
        sms_gateway=getattr(settings, 'SMS_GATEWAY', {}),
        from_email=settings.DEFAULT_FROM_EMAIL,
    )
    services = PortalServices(district_config, notifier)
    logger.debug(f"Homestay services ready: {services!r}")
    return services


def get_services():
    return apps.get_app_config('homestay').services
