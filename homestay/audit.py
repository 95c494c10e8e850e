"""
HP Homestay Portal - Application Action Log
Append-only writer and timeline reader for workflow transitions
"""

import logging

from . import workflow
from .models import ApplicationAction


logger = logging.getLogger(__name__)


def _issue_list(issues_found):
    if issues_found is None:
        return None
    if isinstance(issues_found, str):
        issues = [line.strip() for line in issues_found.splitlines() if line.strip()]
    else:
        issues = [str(issue).strip() for issue in issues_found if str(issue).strip()]
    return issues or None


def record_action(application, actor, action, previous_status, new_status, feedback=None, issues_found=None):
    """Write one audit row. The status pair must be an edge of the status graph."""
    if not workflow.is_permitted_edge(previous_status, new_status):
        raise ValueError(
            f"{action}: {previous_status} -> {new_status} is not a permitted status change"
        )

    entry = ApplicationAction.objects.create(
        application=application,
        actor=actor,
        action=action,
        previous_status=workflow.resolve_status_alias(previous_status),
        new_status=workflow.resolve_status_alias(new_status),
        feedback=feedback or None,
        issues_found=_issue_list(issues_found),
    )
    logger.info(
        f"Application {application.pk}: {action} by {getattr(actor, 'username', 'system')} "
        f"({entry.previous_status} -> {entry.new_status})"
    )
    return entry


def summarize_actor(user):
    if user is None:
        return None
    return {
        'id': user.pk,
        'name': user.full_name or user.username or user.mobile or 'Officer',
        'role': user.role,
        'designation': user.designation or None,
        'district': user.district or None,
    }


def serialize_action(entry):
    return {
        'id': entry.pk,
        'applicationId': entry.application_id,
        'action': entry.action,
        'previousStatus': entry.previous_status,
        'newStatus': entry.new_status,
        'feedback': entry.feedback,
        'issuesFound': entry.issues_found,
        'createdAt': entry.created_at.isoformat() if entry.created_at else None,
        'actor': summarize_actor(entry.actor),
    }


def get_timeline(application):
    entries = (
        ApplicationAction.objects
        .filter(application=application)
        .select_related('actor')
        .order_by('created_at', 'id')
    )
    return [serialize_action(entry) for entry in entries]


def can_view_timeline(user, application):
    if user is None or not user.is_authenticated:
        return False
    if user.role == workflow.PROPERTY_OWNER:
        return application.owner_id == user.pk
    return True


def latest_corrections(application_ids):
    """Most recent owner resubmission per application, keyed by application id"""
    latest = {}
    entries = (
        ApplicationAction.objects
        .filter(application_id__in=list(application_ids), action='correction_resubmitted')
        .order_by('application_id', '-created_at', '-id')
    )
    for entry in entries:
        if entry.application_id not in latest:
            latest[entry.application_id] = {
                'createdAt': entry.created_at.isoformat(),
                'feedback': entry.feedback,
            }
    return latest


def timeline_is_connected(application):
    pairs = (
        ApplicationAction.objects
        .filter(application=application)
        .order_by('created_at', 'id')
        .values_list('previous_status', 'new_status')
    )
    return workflow.is_connected_walk(list(pairs))
