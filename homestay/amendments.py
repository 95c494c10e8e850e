"""
HP Homestay Portal - Service Center & Existing Owner Onboarding

Owners of an approved registration can ask for a renewal, more or fewer
rooms, or a cancelled certificate. Each request is a new application that
copies the registration it amends and then runs the normal workflow.
Owners who already hold a registration certificate issued outside the
portal file it here so the Dealing Assistant can verify it.
"""

import logging
import time
from datetime import timedelta

from django.db import IntegrityError, transaction
from django.utils import timezone
from django.utils.dateparse import parse_date

from . import workflow
from .audit import record_action
from .districts import derive_routing_label
from .documents import get_upload_policy, policy_for_kind, validate_documents
from .exceptions import DuplicateApplication, NotFound, ValidationFailed
from .fees import MAX_ROOMS_ALLOWED
from .forms import ApplicationDraftForm
from .models import HomestayApplication, ApplicationDocument, SystemConfiguration
from .transitions import perform_transition


logger = logging.getLogger(__name__)

SERVICE_TYPE_LABELS = {
    'renewal': 'Renewal',
    'add_rooms': 'Add rooms',
    'delete_rooms': 'Delete rooms',
    'cancel_certificate': 'Cancel certificate',
}

RENEWAL_WINDOW_DAYS = 90
MIN_ROOMS_AFTER_DELETE = 1
UNPAID_SERVICE_TYPES = ('delete_rooms', 'cancel_certificate')

# Room count columns keyed by the names used in a room delta
ROOM_FIELDS = (
    ('single', 'single_bed_rooms'),
    ('double', 'double_bed_rooms'),
    ('family', 'family_suites'),
)

# The draft copy carries the owner-editable fields
CARRIED_FIELDS = list(ApplicationDraftForm.Meta.fields)

EXISTING_RC_KIND = 'existing_rc_onboarding'
EXISTING_RC_MIN_ISSUE_DATE_SETTING_KEY = 'existing_rc_min_issue_date'
DEFAULT_EXISTING_RC_MIN_ISSUE_DATE = '2022-01-01'
LEGACY_NUMBER_PREFIX = 'LEGACY-'

BASE36_DIGITS = '0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ'


# ============================================================================
# ROOMS & RENEWAL WINDOW
# ============================================================================

def room_breakdown(application):
    rooms = {key: max(0, getattr(application, field) or 0) for key, field in ROOM_FIELDS}
    rooms['total'] = rooms['single'] + rooms['double'] + rooms['family']
    return rooms


def compute_room_adjustment(application, mode, delta):
    """
    Target room counts after adding or deleting rooms. Raises ValidationFailed
    when the delta is empty, would exceed the room cap, or would leave the
    property without rooms.
    """
    if delta is None:
        raise ValidationFailed('Room adjustments are required for this service.')

    base = room_breakdown(application)
    requested = {key: max(0, delta.get(key) or 0) for key, _ in ROOM_FIELDS}
    total_delta = sum(requested.values())
    if total_delta == 0:
        raise ValidationFailed('Specify at least one room to add or delete.')

    if mode == 'add_rooms':
        target = {key: base[key] + requested[key] for key, _ in ROOM_FIELDS}
        target['total'] = sum(target.values())
        if target['total'] > MAX_ROOMS_ALLOWED:
            raise ValidationFailed(
                f"HP Homestay Rules permit a maximum of {MAX_ROOMS_ALLOWED} rooms. "
                f"This request would result in {target['total']} rooms."
            )
        target['requestedRoomDelta'] = total_delta
        return target

    if any(requested[key] > base[key] for key, _ in ROOM_FIELDS):
        raise ValidationFailed('Cannot delete more rooms than currently exist in that category.')

    target = {key: base[key] - requested[key] for key, _ in ROOM_FIELDS}
    target['total'] = sum(target.values())
    if target['total'] < MIN_ROOMS_AFTER_DELETE:
        raise ValidationFailed(f'At least {MIN_ROOMS_AFTER_DELETE} room must remain after deletion.')

    target['requestedRoomDelta'] = -total_delta
    target['requestedDeletions'] = [
        {'roomType': key, 'count': requested[key]} for key, _ in ROOM_FIELDS if requested[key]
    ]
    return target


def renewal_window(expiry_date, today=None):
    if expiry_date is None:
        return None
    today = today or timezone.localdate()
    start = expiry_date - timedelta(days=RENEWAL_WINDOW_DAYS)
    return {'start': start, 'end': expiry_date, 'inWindow': start <= today <= expiry_date}


def is_certificate_cancelled(application):
    return bool((application.service_context or {}).get('certificateCancelledOn'))


# ============================================================================
# SERVICE REQUESTS
# ============================================================================

def active_service_request(parent):
    """Most recent request against this registration that is neither approved nor rejected"""
    closed = []
    for status in (workflow.APPROVED, workflow.REJECTED):
        closed.extend(workflow.stored_status_values(status))
    return (
        HomestayApplication.objects
        .filter(parent_application=parent)
        .exclude(status__in=closed)
        .order_by('-created_at', '-id')
        .first()
    )


def summarize_request(request):
    if request is None:
        return None
    return {
        'id': request.pk,
        'applicationNumber': request.application_number,
        'applicationKind': request.application_kind,
        'status': request.status,
        'totalRooms': request.total_rooms,
        'createdAt': request.created_at,
    }


def service_summary(application, today=None):
    """What the owner may request next for one approved registration"""
    rooms = room_breakdown(application)
    window = renewal_window(application.certificate_expiry_date, today)
    cancelled = is_certificate_cancelled(application)
    return {
        'id': application.pk,
        'applicationNumber': application.application_number,
        'propertyName': application.property_name,
        'totalRooms': rooms['total'],
        'maxRoomsAllowed': MAX_ROOMS_ALLOWED,
        'certificateNumber': application.certificate_number,
        'certificateExpiryDate': application.certificate_expiry_date,
        'certificateCancelled': cancelled,
        'renewalWindowStart': window['start'] if window else None,
        'renewalWindowEnd': window['end'] if window else None,
        'canRenew': bool(window and window['inWindow']) and not cancelled,
        'canAddRooms': rooms['total'] < MAX_ROOMS_ALLOWED and not cancelled,
        'canDeleteRooms': rooms['total'] > MIN_ROOMS_AFTER_DELETE and not cancelled,
        'rooms': {'single': rooms['single'], 'double': rooms['double'], 'family': rooms['family']},
        'activeServiceRequest': summarize_request(active_service_request(application)),
    }


def open_service_request(owner, base_application_id, service_type, note=None, room_delta=None):
    """
    Create the draft that carries one service request. The registration it
    amends gets an audit row; the draft itself starts with no history.
    """
    with transaction.atomic():
        parent = (
            HomestayApplication.objects.select_for_update()
            .filter(pk=base_application_id, owner=owner)
            .first()
        )
        if parent is None:
            raise NotFound('Application not found.')
        if parent.status != workflow.APPROVED:
            raise ValidationFailed('Only approved applications can be renewed or amended.')
        if is_certificate_cancelled(parent):
            raise ValidationFailed('The certificate for this application has been cancelled.')

        active = active_service_request(parent)
        if active is not None:
            raise DuplicateApplication(
                'Another service request is already in progress for this application.',
                activeRequest=summarize_request(active),
            )

        today = timezone.localdate()
        window = renewal_window(parent.certificate_expiry_date, today)
        if service_type == 'renewal':
            if window is None:
                raise ValidationFailed('This application does not have an active certificate yet.')
            if not window['inWindow']:
                raise ValidationFailed(
                    f'Renewal is allowed only within {RENEWAL_WINDOW_DAYS} days of certificate expiry.',
                    windowStart=window['start'].isoformat(),
                    windowEnd=window['end'].isoformat(),
                )

        if service_type in ('add_rooms', 'delete_rooms'):
            target = compute_room_adjustment(parent, service_type, room_delta)
        else:
            target = room_breakdown(parent)

        note = (note or '').strip()
        context = {
            'requestedRooms': {key: target[key] for key in ('single', 'double', 'family', 'total')},
            'requiresPayment': service_type not in UNPAID_SERVICE_TYPES,
        }
        if 'requestedRoomDelta' in target:
            context['requestedRoomDelta'] = target['requestedRoomDelta']
        if 'requestedDeletions' in target:
            context['requestedDeletions'] = target['requestedDeletions']
        if window is not None:
            context['renewalWindow'] = {'start': window['start'].isoformat(), 'end': window['end'].isoformat()}
        if parent.certificate_expiry_date:
            context['inheritsCertificateExpiry'] = parent.certificate_expiry_date.isoformat()
        if note:
            context['note'] = note

        request = HomestayApplication(
            owner=owner,
            application_kind=service_type,
            status=workflow.DRAFT,
            current_stage=workflow.STAGE_FOR_STATUS[workflow.DRAFT],
            parent_application=parent,
            parent_application_number=parent.application_number or '',
            parent_certificate_number=parent.certificate_number or '',
            inherited_certificate_valid_upto=parent.certificate_expiry_date,
            service_requested_at=timezone.now(),
            service_notes=note,
            service_context=context,
        )
        for name in CARRIED_FIELDS:
            setattr(request, name, getattr(parent, name))
        request.single_bed_rooms = target['single']
        request.double_bed_rooms = target['double']
        request.family_suites = target['family']
        request.total_rooms = target['total']
        request.attached_washrooms = max(target['total'], parent.attached_washrooms or 0)
        request.save()

        ApplicationDocument.objects.bulk_create([
            ApplicationDocument(
                application=request,
                document_type=document.document_type,
                file_name=document.file_name,
                file_path=document.file_path,
                file_size=document.file_size,
                mime_type=document.mime_type,
            )
            for document in parent.documents.all()
        ])

        feedback = f"{SERVICE_TYPE_LABELS[service_type]} request #{request.pk} opened"
        if note:
            feedback = f"{feedback}: {note}"
        record_action(
            parent, owner, 'service_request_opened', workflow.APPROVED, workflow.APPROVED, feedback=feedback,
        )

    logger.info(f"Service request {request.pk} ({service_type}) opened against application {parent.pk}")
    return request, parent


def add_years(value, years):
    try:
        return value.replace(year=value.year + years)
    except ValueError:
        # 29 February
        return value.replace(year=value.year + years, day=28)


def certificate_updates(application, issue_date):
    """
    Certificate columns written when payment for the application is confirmed.
    Empty when the application keeps or gives up a certificate instead of
    getting a new one.
    """
    kind = application.application_kind
    if kind in (EXISTING_RC_KIND, 'cancel_certificate'):
        return {}

    validity = application.certificate_validity_years or 1
    if kind == 'renewal':
        start = max(application.inherited_certificate_valid_upto or issue_date, issue_date)
        expiry_date = add_years(start, validity)
    elif kind in ('add_rooms', 'delete_rooms') and application.inherited_certificate_valid_upto:
        expiry_date = application.inherited_certificate_valid_upto
    else:
        expiry_date = add_years(issue_date, validity)
    return {'certificate_issued_date': issue_date, 'certificate_expiry_date': expiry_date}


def close_service_request(application, actor):
    """Apply an approved request to the registration it amends"""
    if application.application_kind != 'cancel_certificate' or application.parent_application_id is None:
        return
    today = timezone.localdate()
    with transaction.atomic():
        parent = HomestayApplication.objects.select_for_update().get(pk=application.parent_application_id)
        context = dict(parent.service_context or {})
        context['certificateCancelledOn'] = today.isoformat()
        HomestayApplication.objects.filter(pk=parent.pk).update(
            certificate_expiry_date=today, service_context=context, updated_at=timezone.now(),
        )
        record_action(
            parent, actor, 'certificate_cancelled', workflow.APPROVED, workflow.APPROVED,
            feedback=f"Certificate {parent.certificate_number} cancelled by request #{application.pk}",
        )
    logger.info(f"Certificate of application {parent.pk} cancelled by request {application.pk}")


# ============================================================================
# EXISTING OWNERS
# ============================================================================

def existing_rc_cutoff():
    """Earliest certificate issue date accepted for onboarding"""
    try:
        stored = SystemConfiguration.get_setting(EXISTING_RC_MIN_ISSUE_DATE_SETTING_KEY)
    except ValueError as e:
        logger.error(f"Invalid onboarding cutoff setting, using default: {str(e)}")
        stored = None
    cutoff = None
    if isinstance(stored, str):
        try:
            cutoff = parse_date(stored.strip()[:10])
        except ValueError:
            cutoff = None
    return cutoff or parse_date(DEFAULT_EXISTING_RC_MIN_ISSUE_DATE)


def to_base36(number):
    digits = ''
    while True:
        number, remainder = divmod(number, 36)
        digits = BASE36_DIGITS[remainder] + digits
        if not number:
            return digits


def legacy_application_number(district, timestamp_ms=None):
    letters = ''.join(ch for ch in (district or 'LEG').upper() if 'A' <= ch <= 'Z')
    prefix = letters[:3].ljust(3, 'X')
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    return f"{LEGACY_NUMBER_PREFIX}{prefix}-{to_base36(timestamp_ms)}"


def active_existing_rc_request(owner):
    """Onboarding request still waiting on the district desk"""
    closed = []
    for status in (workflow.APPROVED, workflow.REJECTED):
        closed.extend(workflow.stored_status_values(status))
    return (
        HomestayApplication.objects
        .filter(owner=owner, application_kind=EXISTING_RC_KIND)
        .exclude(status__in=closed)
        .order_by('-created_at', '-id')
        .first()
    )


def _parse_rc_date(value):
    try:
        return parse_date((value or '').strip()[:10])
    except ValueError:
        return None


def _uploaded_documents(files, document_type):
    return [
        ApplicationDocument(
            document_type=document_type,
            file_name=item['fileName'],
            file_path=item['filePath'],
            file_size=max(1, round(item.get('fileSize') or 0)),
            mime_type=item.get('mimeType') or 'application/pdf',
        )
        for item in files
    ]


def _duplicate_certificate(rc_number):
    existing = HomestayApplication.objects.filter(certificate_number=rc_number).first()
    if existing is None:
        return DuplicateApplication('This RC / certificate number already exists in the system.')
    return DuplicateApplication(
        'This RC / certificate number is already registered in the system. '
        'Please open the captured request instead of submitting a new one.',
        applicationId=existing.pk,
    )


def onboard_existing_owner(user, data):
    """
    Capture an existing registration certificate and hand it to the district
    desk. The record is created as a draft and submitted in the same
    transaction, so its history starts with the submission like any other.
    """
    if not user.aadhaar_number:
        raise ValidationFailed('Please add your Aadhaar number in profile before submitting existing owner intake.')

    active = active_existing_rc_request(user)
    if active is not None:
        raise DuplicateApplication(
            'We already captured your existing license request. Please wait for the Admin-RC desk to verify.',
            applicationId=active.pk,
        )

    issue_date = _parse_rc_date(data['rc_issue_date'])
    expiry_date = _parse_rc_date(data['rc_expiry_date'])
    if issue_date is None or expiry_date is None:
        raise ValidationFailed('Invalid certificate dates provided')
    cutoff = existing_rc_cutoff()
    if issue_date < cutoff:
        raise ValidationFailed(f'Certificates issued before {cutoff.isoformat()} are not eligible for onboarding.')
    if expiry_date <= issue_date:
        raise ValidationFailed('Certificate expiry must be after the issue date')

    rc_number = data['rc_number'].strip()
    if HomestayApplication.objects.filter(certificate_number=rc_number).exists():
        raise _duplicate_certificate(rc_number)

    documents = (
        _uploaded_documents(data['certificate_documents'], 'legacy_certificate')
        + _uploaded_documents(data['identity_proof_documents'], 'owner_identity_proof')
    )
    error = validate_documents(documents, policy_for_kind(get_upload_policy(), EXISTING_RC_KIND), require_complete=True)
    if error:
        raise ValidationFailed(error)

    now = timezone.now()
    district = derive_routing_label(data['district'].strip(), data['tehsil'].strip()) or data['district'].strip()
    total_rooms = data['total_rooms']
    notes = (data['notes'] or '').strip()
    guardian_name = data['guardian_name'].strip()

    application = HomestayApplication(
        owner=user,
        application_number=legacy_application_number(district),
        application_kind=EXISTING_RC_KIND,
        status=workflow.DRAFT,
        current_stage=workflow.STAGE_FOR_STATUS[workflow.DRAFT],
        category='silver',
        location_type=data['location_type'],
        project_type='existing_property',
        owner_name=data['owner_name'].strip(),
        owner_mobile=data['owner_mobile'].strip() or user.mobile or '',
        owner_email=data['owner_email'] or user.email or '',
        owner_aadhaar=user.aadhaar_number,
        owner_gender='other',
        guardian_name=guardian_name,
        property_name=data['property_name'].strip(),
        address=data['address'].strip(),
        district=district,
        tehsil=data['tehsil'].strip(),
        pincode=data['pincode'].strip(),
        single_bed_rooms=total_rooms,
        double_bed_rooms=0,
        family_suites=0,
        total_rooms=total_rooms,
        attached_washrooms=total_rooms,
        certificate_number=rc_number,
        certificate_issued_date=issue_date,
        certificate_expiry_date=expiry_date,
        parent_application_number=rc_number,
        parent_certificate_number=rc_number,
        inherited_certificate_valid_upto=expiry_date,
        service_requested_at=now,
        service_notes=notes or (
            f"Existing owner onboarding request captured on {now:%d %b %Y} with RC #{rc_number}."
        ),
        service_context={
            'requestedRooms': {'total': total_rooms},
            'legacyGuardianName': guardian_name,
            'inheritsCertificateExpiry': expiry_date.isoformat(),
            'requiresPayment': False,
            'legacyOnboarding': True,
            **({'note': notes} if notes else {}),
        },
    )

    try:
        with transaction.atomic():
            application.save()
            for document in documents:
                document.application = application
            ApplicationDocument.objects.bulk_create(documents)
            application = perform_transition(
                application, user, 'submit_existing_rc',
                updates={'base_fee': 0, 'total_before_discounts': 0, 'total_fee': 0},
                feedback=f"Existing certificate {rc_number} submitted for verification",
            )
    except IntegrityError:
        logger.warning(f"Onboarding for {user.username} hit an existing certificate {rc_number}")
        raise _duplicate_certificate(rc_number)

    logger.info(f"Existing certificate {rc_number} captured as application {application.pk}")
    return application
