"""
HP Homestay Portal - Application Workflow

Status vocabulary, the permitted status graph and the declarative
transition table consulted by every mutating endpoint. Nothing in this
module touches the database; the executor lives in transitions.py.
"""

from .districts import districts_match
from .exceptions import AuthenticationRequired, Forbidden, InvalidTransition


# ============================================================================
# ROLES
# ============================================================================

PROPERTY_OWNER = 'property_owner'
DEALING_ASSISTANT = 'dealing_assistant'
DISTRICT_TOURISM_OFFICER = 'district_tourism_officer'
DISTRICT_OFFICER = 'district_officer'
STATE_OFFICER = 'state_officer'
ADMIN = 'admin'
SUPER_ADMIN = 'super_admin'

ROLE_CHOICES = [
    (PROPERTY_OWNER, 'Property Owner'),
    (DEALING_ASSISTANT, 'Dealing Assistant'),
    (DISTRICT_TOURISM_OFFICER, 'District Tourism Development Officer'),
    (DISTRICT_OFFICER, 'District Officer'),
    (STATE_OFFICER, 'State Officer'),
    (ADMIN, 'Admin'),
    (SUPER_ADMIN, 'Super Admin'),
]

DTDO_ROLES = (DISTRICT_TOURISM_OFFICER, DISTRICT_OFFICER)
DISTRICT_ROLES = (DEALING_ASSISTANT,) + DTDO_ROLES
STATE_ROLES = (STATE_OFFICER, ADMIN, SUPER_ADMIN)
STAFF_ROLES = DISTRICT_ROLES + STATE_ROLES
INSPECTION_OFFICER_ROLES = DTDO_ROLES + (STATE_OFFICER,)


# ============================================================================
# STATUSES
# ============================================================================

DRAFT = 'draft'
SUBMITTED = 'submitted'
UNDER_SCRUTINY = 'under_scrutiny'
FORWARDED_TO_DTDO = 'forwarded_to_dtdo'
DTDO_REVIEW = 'dtdo_review'
INSPECTION_SCHEDULED = 'inspection_scheduled'
INSPECTION_UNDER_REVIEW = 'inspection_under_review'
REVERTED_TO_APPLICANT = 'reverted_to_applicant'
SENT_BACK_FOR_CORRECTIONS = 'sent_back_for_corrections'
VERIFIED_FOR_PAYMENT = 'verified_for_payment'
PAYMENT_PENDING = 'payment_pending'
APPROVED = 'approved'
REJECTED = 'rejected'

STATUS_CHOICES = [
    (DRAFT, 'Draft'),
    (SUBMITTED, 'Submitted'),
    (UNDER_SCRUTINY, 'Under Scrutiny'),
    (FORWARDED_TO_DTDO, 'Forwarded to DTDO'),
    (DTDO_REVIEW, 'DTDO Review'),
    (INSPECTION_SCHEDULED, 'Inspection Scheduled'),
    (INSPECTION_UNDER_REVIEW, 'Inspection Under Review'),
    (REVERTED_TO_APPLICANT, 'Reverted to Applicant'),
    (SENT_BACK_FOR_CORRECTIONS, 'Sent Back for Corrections'),
    (VERIFIED_FOR_PAYMENT, 'Verified for Payment'),
    (PAYMENT_PENDING, 'Payment Pending'),
    (APPROVED, 'Approved'),
    (REJECTED, 'Rejected'),
]

CANONICAL_STATUSES = tuple(value for value, _ in STATUS_CHOICES)

# Older rows still carry these values; they are mapped when a row is loaded.
LEGACY_STATUS_ALIASES = {
    'pending': SUBMITTED,
    'district_review': DTDO_REVIEW,
    'state_review': PAYMENT_PENDING,
    'reverted_by_dtdo': REVERTED_TO_APPLICANT,
    'objection_raised': SENT_BACK_FOR_CORRECTIONS,
    'site_inspection_scheduled': INSPECTION_SCHEDULED,
}

TERMINAL_STATUSES = frozenset([APPROVED, REJECTED])
CORRECTION_STATUSES = frozenset([REVERTED_TO_APPLICANT, SENT_BACK_FOR_CORRECTIONS])

STAGE_FOR_STATUS = {
    DRAFT: 'draft',
    SUBMITTED: 'scrutiny',
    UNDER_SCRUTINY: 'scrutiny',
    FORWARDED_TO_DTDO: 'district',
    DTDO_REVIEW: 'district',
    INSPECTION_SCHEDULED: 'site_inspection',
    INSPECTION_UNDER_REVIEW: 'inspection_completed',
    REVERTED_TO_APPLICANT: 'corrections',
    SENT_BACK_FOR_CORRECTIONS: 'corrections',
    VERIFIED_FOR_PAYMENT: 'payment',
    PAYMENT_PENDING: 'payment',
    APPROVED: 'final',
    REJECTED: 'closed',
}


def resolve_status_alias(value):
    """Map a stored status to its canonical value, leaving unknown values untouched"""
    if value is None:
        return value
    cleaned = value.strip().lower()
    return LEGACY_STATUS_ALIASES.get(cleaned, cleaned)


def normalize_status(value):
    status = resolve_status_alias(value)
    if status not in CANONICAL_STATUSES:
        raise ValueError(f"Unknown application status: {value!r}")
    return status


# ============================================================================
# STATUS GRAPH
# ============================================================================

STATUS_GRAPH = {
    DRAFT: frozenset([SUBMITTED]),
    SUBMITTED: frozenset([UNDER_SCRUTINY]),
    UNDER_SCRUTINY: frozenset([
        FORWARDED_TO_DTDO, REVERTED_TO_APPLICANT, SENT_BACK_FOR_CORRECTIONS, REJECTED,
    ]),
    FORWARDED_TO_DTDO: frozenset([
        DTDO_REVIEW, REVERTED_TO_APPLICANT, SENT_BACK_FOR_CORRECTIONS, REJECTED,
    ]),
    DTDO_REVIEW: frozenset([
        DTDO_REVIEW, INSPECTION_SCHEDULED, REVERTED_TO_APPLICANT,
        SENT_BACK_FOR_CORRECTIONS, REJECTED,
    ]),
    INSPECTION_SCHEDULED: frozenset([
        INSPECTION_SCHEDULED, INSPECTION_UNDER_REVIEW, PAYMENT_PENDING,
        SENT_BACK_FOR_CORRECTIONS, REJECTED,
    ]),
    INSPECTION_UNDER_REVIEW: frozenset([
        VERIFIED_FOR_PAYMENT, PAYMENT_PENDING, SENT_BACK_FOR_CORRECTIONS, REJECTED,
    ]),
    VERIFIED_FOR_PAYMENT: frozenset([PAYMENT_PENDING, REJECTED]),
    PAYMENT_PENDING: frozenset([APPROVED, REJECTED]),
    REVERTED_TO_APPLICANT: frozenset([SUBMITTED]),
    SENT_BACK_FOR_CORRECTIONS: frozenset([SUBMITTED]),
    # Certificate issue is recorded against an approved application without moving it
    APPROVED: frozenset([APPROVED]),
    REJECTED: frozenset(),
}


def is_permitted_edge(previous_status, new_status):
    previous_status = resolve_status_alias(previous_status)
    new_status = resolve_status_alias(new_status)
    return new_status in STATUS_GRAPH.get(previous_status, ())


def is_connected_walk(pairs):
    """
    True when every (previous, new) pair is a permitted edge and each pair
    starts where the one before it ended.
    """
    last_status = None
    for previous_status, new_status in pairs:
        previous_status = resolve_status_alias(previous_status)
        new_status = resolve_status_alias(new_status)
        if not is_permitted_edge(previous_status, new_status):
            return False
        if last_status is not None and previous_status != last_status:
            return False
        last_status = new_status
    return True


# ============================================================================
# TRANSITION TABLE
# ============================================================================

REMARKS_OPTIONAL = 'optional'
REMARKS_REQUIRED = 'required'


class TransitionRule:
    """One row of the transition table"""

    def __init__(self, action, roles, sources, targets, audit_action,
                 remarks=REMARKS_OPTIONAL, min_remarks_length=1, remarks_message=None,
                 notification=None, owner_only=False, status_message=None):
        self.action = action
        self.roles = tuple(roles)
        self.sources = tuple(sources)
        self.targets = (targets,) if isinstance(targets, str) else tuple(targets)
        self.audit_action = audit_action
        self.remarks = remarks
        self.min_remarks_length = min_remarks_length
        self.remarks_message = remarks_message or 'Remarks are required for this action'
        self.notification = notification
        self.owner_only = owner_only
        self.status_message = status_message

    @property
    def target(self):
        return self.targets[0]

    @property
    def remarks_required(self):
        return self.remarks == REMARKS_REQUIRED

    def __repr__(self):
        return f"TransitionRule({self.action}: {', '.join(self.sources)} -> {', '.join(self.targets)})"


TRANSITION_RULES = [
    # Owner
    TransitionRule(
        'submit', [PROPERTY_OWNER], [DRAFT], SUBMITTED, 'owner_submitted',
        notification='application_submitted', owner_only=True,
        status_message='Only draft applications can be submitted',
    ),
    TransitionRule(
        'submit_existing_rc', [PROPERTY_OWNER], [DRAFT], SUBMITTED, 'existing_rc_submitted',
        notification='application_submitted', owner_only=True,
        status_message='Only draft applications can be submitted',
    ),
    TransitionRule(
        'resubmit', [PROPERTY_OWNER], [REVERTED_TO_APPLICANT, SENT_BACK_FOR_CORRECTIONS],
        SUBMITTED, 'correction_resubmitted', owner_only=True,
        notification='application_submitted',
        status_message='Application can only be updated when sent back for corrections',
    ),
    TransitionRule(
        'acknowledge_inspection', [PROPERTY_OWNER], [INSPECTION_SCHEDULED],
        INSPECTION_SCHEDULED, 'inspection_acknowledged', owner_only=True,
        status_message='Inspection has not been scheduled yet',
    ),
    TransitionRule(
        'initiate_payment', [PROPERTY_OWNER], [VERIFIED_FOR_PAYMENT], PAYMENT_PENDING,
        'payment_initiated', owner_only=True,
        status_message='Payment can only be made once the application is verified for payment',
    ),

    # Dealing Assistant
    TransitionRule(
        'start_scrutiny', [DEALING_ASSISTANT], [SUBMITTED], UNDER_SCRUTINY, 'start_scrutiny',
        status_message='Only submitted applications can be put under scrutiny',
    ),
    TransitionRule(
        'forward_to_dtdo', [DEALING_ASSISTANT], [UNDER_SCRUTINY], FORWARDED_TO_DTDO,
        'forwarded_to_dtdo', remarks=REMARKS_REQUIRED,
        remarks_message='Scrutiny remarks are required before forwarding.',
        notification='forwarded_to_dtdo',
        status_message='Only applications under scrutiny can be forwarded',
    ),
    TransitionRule(
        'da_send_back', [DEALING_ASSISTANT], [UNDER_SCRUTINY], REVERTED_TO_APPLICANT,
        'reverted_by_da', remarks=REMARKS_REQUIRED,
        remarks_message='Reason for sending back is required',
        notification='da_send_back',
        status_message='Only applications under scrutiny can be sent back',
    ),
    TransitionRule(
        'submit_inspection_report', [DEALING_ASSISTANT], [INSPECTION_SCHEDULED],
        INSPECTION_UNDER_REVIEW, 'inspection_completed',
        status_message='Inspection report can only be filed for a scheduled inspection',
    ),

    # DTDO
    TransitionRule(
        'dtdo_accept', DTDO_ROLES, [FORWARDED_TO_DTDO, DTDO_REVIEW], DTDO_REVIEW, 'dtdo_accept',
        remarks=REMARKS_REQUIRED,
        remarks_message='Remarks are required when scheduling an inspection.',
        status_message='Application is not in the correct status for DTDO review',
    ),
    TransitionRule(
        'dtdo_reject', DTDO_ROLES, [FORWARDED_TO_DTDO, DTDO_REVIEW], REJECTED, 'dtdo_reject',
        remarks=REMARKS_REQUIRED, remarks_message='Rejection reason is required',
        notification='application_rejected',
        status_message='Application is not in the correct status for DTDO review',
    ),
    TransitionRule(
        'dtdo_revert', DTDO_ROLES, [FORWARDED_TO_DTDO, DTDO_REVIEW], REVERTED_TO_APPLICANT,
        'dtdo_revert', remarks=REMARKS_REQUIRED,
        remarks_message='Please specify what corrections are needed',
        notification='dtdo_revert',
        status_message='Application is not in the correct status for DTDO review',
    ),
    TransitionRule(
        'schedule_inspection', DTDO_ROLES, [DTDO_REVIEW], INSPECTION_SCHEDULED,
        'inspection_scheduled', notification='inspection_scheduled',
        status_message='Application must be accepted by DTDO before scheduling inspection',
    ),
    TransitionRule(
        'verify_for_payment', DTDO_ROLES, [INSPECTION_UNDER_REVIEW], VERIFIED_FOR_PAYMENT,
        'verified_for_payment', notification='verified_for_payment',
        status_message='Application must be in inspection_under_review status',
    ),
    TransitionRule(
        'reject_inspection_report', DTDO_ROLES, [INSPECTION_UNDER_REVIEW], REJECTED,
        'dtdo_reject', remarks=REMARKS_REQUIRED, remarks_message='Rejection reason is required',
        notification='application_rejected',
        status_message='Application must be in inspection_under_review status',
    ),
    TransitionRule(
        'raise_objections', DTDO_ROLES, [INSPECTION_UNDER_REVIEW], SENT_BACK_FOR_CORRECTIONS,
        'objection_raised', remarks=REMARKS_REQUIRED,
        remarks_message='Please specify the objections',
        notification='dtdo_objection',
        status_message='Application must be in inspection_under_review status',
    ),
    TransitionRule(
        'review_reject_district', DTDO_ROLES,
        [UNDER_SCRUTINY, FORWARDED_TO_DTDO, DTDO_REVIEW, INSPECTION_UNDER_REVIEW],
        REJECTED, 'rejected', remarks=REMARKS_REQUIRED,
        remarks_message='Comments are required when rejecting an application',
        notification='application_rejected',
        status_message='This application cannot be rejected at district level in its current status',
    ),

    # Inspection officers
    TransitionRule(
        'move_to_inspection', INSPECTION_OFFICER_ROLES, [DTDO_REVIEW], INSPECTION_SCHEDULED,
        'inspection_scheduled', notification='inspection_scheduled',
        status_message='Application must be accepted by DTDO before scheduling inspection',
    ),
    TransitionRule(
        'complete_inspection', INSPECTION_OFFICER_ROLES,
        [INSPECTION_SCHEDULED, INSPECTION_UNDER_REVIEW],
        [PAYMENT_PENDING, SENT_BACK_FOR_CORRECTIONS, REJECTED], 'inspection_completed',
        status_message='No inspection is in progress for this application',
    ),
    TransitionRule(
        'send_back', INSPECTION_OFFICER_ROLES,
        [UNDER_SCRUTINY, FORWARDED_TO_DTDO, DTDO_REVIEW, INSPECTION_UNDER_REVIEW],
        SENT_BACK_FOR_CORRECTIONS, 'sent_back_for_corrections', remarks=REMARKS_REQUIRED,
        min_remarks_length=10, remarks_message='Feedback is required (minimum 10 characters)',
        notification='dtdo_revert',
        status_message='This application cannot be sent back in its current status',
    ),
    TransitionRule(
        'confirm_payment', INSPECTION_OFFICER_ROLES, [PAYMENT_PENDING], APPROVED,
        'payment_confirmed', notification='application_approved',
        status_message='Only applications awaiting payment can be confirmed',
    ),

    # State
    TransitionRule(
        'final_approve', STATE_ROLES, [PAYMENT_PENDING], APPROVED, 'approved',
        notification='application_approved',
        status_message='This application is not awaiting state approval',
    ),
    TransitionRule(
        'final_reject', STATE_ROLES, [VERIFIED_FOR_PAYMENT, PAYMENT_PENDING], REJECTED,
        'rejected', remarks=REMARKS_REQUIRED,
        remarks_message='Comments are required when rejecting an application',
        notification='application_rejected',
        status_message='This application is not awaiting state review',
    ),
]

TRANSITIONS = {rule.action: rule for rule in TRANSITION_RULES}

PERMISSIONS = frozenset(
    (role, status, rule.action)
    for rule in TRANSITION_RULES
    for role in rule.roles
    for status in rule.sources
)


def is_permitted(role, status, action):
    return (role, resolve_status_alias(status), action) in PERMISSIONS


def get_rule(action):
    try:
        return TRANSITIONS[action]
    except KeyError:
        raise ValueError(f"Unknown workflow action: {action}")


# ============================================================================
# GUARD
# ============================================================================

def authorize(user, application, action, district_config=None):
    """
    Single guard for every workflow action. Checks run in the order the
    client sees them: session, role, ownership, district, current status.
    """
    rule = get_rule(action)

    if user is None or not user.is_authenticated:
        raise AuthenticationRequired()

    if user.role not in rule.roles:
        raise Forbidden()

    if rule.owner_only and application.owner_id != user.pk:
        raise Forbidden('Access denied')

    if user.role in DISTRICT_ROLES and not districts_match(user.district, application.district, district_config):
        raise Forbidden('You can only process applications from your district')

    status = resolve_status_alias(application.status)
    if (user.role, status, action) not in PERMISSIONS:
        raise InvalidTransition(
            rule.status_message or f'Application is not in the correct status for this action (current: {status})',
            status=status,
        )
    return rule


def clean_remarks(rule, remarks):
    """Strip remarks and enforce the rule's remarks policy"""
    cleaned = remarks.strip() if isinstance(remarks, str) else ''
    if rule.remarks_required and len(cleaned) < rule.min_remarks_length:
        raise InvalidTransition(rule.remarks_message)
    return cleaned or None


def resolve_review_action(role, decision):
    """Map a generic approve/reject review onto the transition for the caller's tier"""
    if decision not in ('approve', 'reject'):
        raise InvalidTransition("Invalid action. Must be 'approve' or 'reject'")
    if role in DTDO_ROLES:
        return 'verify_for_payment' if decision == 'approve' else 'review_reject_district'
    if role == STATE_OFFICER:
        return 'final_approve' if decision == 'approve' else 'final_reject'
    raise Forbidden('Only district and state officers can review applications')


# ============================================================================
# INSPECTION OUTCOMES
# ============================================================================

INSPECTION_OUTCOMES = {
    'approved': (PAYMENT_PENDING, None),
    'corrections_needed': (SENT_BACK_FOR_CORRECTIONS, 'dtdo_revert'),
    'rejected': (REJECTED, 'application_rejected'),
}


def resolve_inspection_outcome(outcome, issues_found=None, notes=None):
    """
    Return (target status, notification event, issue text) for a completed
    inspection. Anything short of a clean approval needs an issue description.
    """
    if outcome not in INSPECTION_OUTCOMES:
        raise InvalidTransition('Invalid inspection outcome')

    issues_text = issues_found.strip() if isinstance(issues_found, str) else ''
    notes_text = notes.strip() if isinstance(notes, str) else ''
    if outcome != 'approved' and not issues_text and not notes_text:
        raise InvalidTransition(
            'Issues description is required when sending back for corrections or rejecting an application'
        )

    target, event = INSPECTION_OUTCOMES[outcome]
    return target, event, issues_text or notes_text or None


def stored_status_values(status):
    """Every value that may be stored for a canonical status, legacy aliases included"""
    return [status] + [legacy for legacy, canonical in LEGACY_STATUS_ALIASES.items() if canonical == status]
