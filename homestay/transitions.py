"""
HP Homestay Portal - Transition Executor
Applies one row of the transition table: guard, status update, audit row, notification
"""

import logging

from django.db import transaction
from django.utils import timezone

from . import workflow
from .audit import record_action
from .exceptions import ConcurrentTransition
from .models import HomestayApplication
from .notifications import queue_notification


logger = logging.getLogger(__name__)

RULE_NOTIFICATION = object()


def _reviewer_fields(actor, now, remarks):
    """Name/date/notes columns for the tier the actor belongs to"""
    if actor is None:
        return {}
    if actor.role == workflow.DEALING_ASSISTANT:
        fields = {'da': actor, 'da_review_date': now}
        if remarks:
            fields['da_remarks'] = remarks
    elif actor.role == workflow.DISTRICT_TOURISM_OFFICER:
        fields = {'dtdo': actor, 'dtdo_review_date': now}
        if remarks:
            fields['dtdo_remarks'] = remarks
    elif actor.role == workflow.DISTRICT_OFFICER:
        fields = {'district_officer': actor, 'district_review_date': now}
        if remarks:
            fields['district_notes'] = remarks
    elif actor.role in workflow.STATE_ROLES:
        fields = {'state_officer': actor, 'state_review_date': now}
        if remarks:
            fields['state_notes'] = remarks
    else:
        fields = {}
    return fields


def stamp_fields(rule, actor, target, now, remarks):
    """Columns written alongside the status for a given transition"""
    fields = {}
    action = rule.action

    if action in ('submit', 'submit_existing_rc', 'resubmit'):
        fields['submitted_at'] = now
    elif action == 'forward_to_dtdo':
        fields.update(_reviewer_fields(actor, now, remarks))
        fields['da_forwarded_date'] = now
    elif action in ('move_to_inspection', 'complete_inspection'):
        fields['site_inspection_officer'] = actor
        if action == 'complete_inspection':
            fields['site_inspection_completed_date'] = now
            if remarks:
                fields['site_inspection_notes'] = remarks
    elif action == 'submit_inspection_report':
        fields['site_inspection_completed_date'] = now
    elif action not in ('acknowledge_inspection', 'initiate_payment', 'schedule_inspection'):
        fields.update(_reviewer_fields(actor, now, remarks))

    if target in workflow.CORRECTION_STATUSES and remarks:
        fields['clarification_requested'] = remarks
    if target == workflow.REJECTED and remarks:
        fields['rejection_reason'] = remarks
    if target == workflow.APPROVED:
        fields['approved_at'] = now
    return fields


def perform_transition(application, actor, action, remarks=None, target_status=None, updates=None,
                       issues_found=None, feedback=None, notification=RULE_NOTIFICATION,
                       notification_extras=None, district_config=None):
    """
    Move an application along one permitted edge.

    The status update is a compare-and-swap on the stored status and runs in
    the same transaction as the audit row, so a concurrent change raises
    ConcurrentTransition instead of overwriting it. The notification (the
    rule's event unless overridden, None to skip) is sent after commit.
    Returns the reloaded application.
    """
    if district_config is None:
        from .services import get_services
        district_config = get_services().district_config

    rule = workflow.authorize(actor, application, action, district_config)
    remarks_text = workflow.clean_remarks(rule, remarks)

    target = target_status or rule.target
    if target not in rule.targets:
        raise ValueError(f"{action} cannot move an application to {target}")

    previous_status = workflow.resolve_status_alias(application.status)
    now = timezone.now()

    fields = stamp_fields(rule, actor, target, now, remarks_text)
    fields.update(updates or {})
    fields['status'] = target
    fields['current_stage'] = workflow.STAGE_FOR_STATUS[target]
    fields['updated_at'] = now

    event = rule.notification if notification is RULE_NOTIFICATION else notification

    with transaction.atomic():
        updated = (
            HomestayApplication.objects
            .filter(pk=application.pk, status=application.stored_status)
            .update(**fields)
        )
        if not updated:
            current = (
                HomestayApplication.objects.filter(pk=application.pk)
                .values_list('status', flat=True).first()
            )
            logger.warning(
                f"Application {application.pk}: {action} lost a race "
                f"(expected {application.stored_status}, found {current})"
            )
            raise ConcurrentTransition(status=workflow.resolve_status_alias(current))

        record_action(
            application, actor, rule.audit_action, previous_status, target,
            feedback=feedback if feedback is not None else remarks_text,
            issues_found=issues_found,
        )

        refreshed = HomestayApplication.objects.select_related('owner').get(pk=application.pk)
        if event:
            extras = {'remarks': remarks_text}
            extras.update(notification_extras or {})
            queue_notification(event, application=refreshed, owner=refreshed.owner, extras=extras)

    return refreshed
