"""
HP Homestay Portal - JSON API Views
Owner, Dealing Assistant, DTDO and state officer endpoints over session auth
"""

import logging
import random
from datetime import timedelta

import openpyxl
from openpyxl.styles import Font, Alignment, PatternFill, Border, Side
from openpyxl.utils import get_column_letter
from django.conf import settings
from django.contrib.auth import authenticate, login, logout
from django.db import transaction
from django.http import HttpResponse, JsonResponse
from django.utils import timezone
from django.views.decorators.csrf import ensure_csrf_cookie
from django.views.decorators.http import require_http_methods

from . import workflow
from .amendments import (
    active_existing_rc_request, certificate_updates, close_service_request, existing_rc_cutoff,
    onboard_existing_owner, open_service_request, service_summary,
)
from .audit import get_timeline, can_view_timeline, latest_corrections, record_action
from .decorators import api_view, api_login_required, role_required, parse_json_body
from .districts import districts_match, district_filter, derive_routing_label, format_application_number
from .documents import get_upload_policy, policy_for_kind, validate_documents
from .exceptions import (
    AuthenticationRequired, Forbidden, NotFound, InvalidTransition, ValidationFailed, DuplicateApplication,
)
from .fees import fee_fields_for, validate_room_configuration
from .forms import (
    validate_payload, bind_draft_form, first_error, snake_case_keys, LoginForm, DocumentForm, RemarksForm, ReviewForm,
    SendBackForm, DaSendBackForm, MoveToInspectionForm, CompleteInspectionForm, SearchForm, ScrutinyForm,
    ScheduleInspectionForm, InspectionReportForm, PaymentForm, ConfirmPaymentForm, ServiceRequestForm,
    ExistingOwnerForm,
)
from .models import (
    User, HomestayApplication, ApplicationDocument, ApplicationAction, InspectionOrder, InspectionReport,
    Payment,
)
from .notifications import create_in_app_notification, format_date
from .serializers import (
    serialize_user, serialize_application, serialize_document, serialize_inspection_order,
    serialize_inspection_report, serialize_payment,
)
from .services import get_services
from .transitions import perform_transition

logger = logging.getLogger(__name__)

RECENT_LIMIT_CHOICES = (10, 20, 50)

RESUBMIT_CONSENT = 'Owner confirmed that the requested corrections have been made'

SEARCH_FILTER_MESSAGE = (
    'Provide at least one search filter (application number, phone, Aadhaar, date range, or quick view limit).'
)


# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

def district_config():
    return get_services().district_config


def get_application(pk):
    application = HomestayApplication.objects.select_related('owner').filter(pk=pk).first()
    if application is None:
        raise NotFound()
    return application


def require_district(user):
    if not user.district:
        raise Forbidden('Your account is not assigned to a district')
    return user.district


def ensure_can_view(user, application):
    """Owners see their own records, district staff see their district, state roles see all"""
    if user.role == workflow.PROPERTY_OWNER:
        if application.owner_id != user.pk:
            raise Forbidden('Access denied')
    elif user.role in workflow.DISTRICT_ROLES:
        if not districts_match(user.district, application.district, district_config()):
            raise Forbidden('You can only view applications from your district')
    elif user.role not in workflow.STATE_ROLES:
        raise Forbidden()


def scoped_applications(user):
    applications = HomestayApplication.objects.select_related('owner')
    if user.role == workflow.PROPERTY_OWNER:
        return applications.filter(owner=user)
    if user.role in workflow.DISTRICT_ROLES:
        return applications.filter(district_filter('district', require_district(user), district_config()))
    if user.role in workflow.STATE_ROLES:
        return applications
    raise Forbidden()


def application_list_response(applications, with_corrections=False):
    applications = list(applications)
    corrections = latest_corrections(app.pk for app in applications) if with_corrections else {}
    return JsonResponse({
        'applications': [serialize_application(app, corrections.get(app.pk)) for app in applications],
    })


def transition_response(application, message, status=200, **extra):
    payload = {'application': serialize_application(application), 'message': message}
    payload.update(extra)
    return JsonResponse(payload, status=status)


def document_policy(application):
    return policy_for_kind(get_upload_policy(), application.application_kind)


def generate_certificate_number(year):
    while True:
        number = f"HP-HST-{year}-{random.randint(10000, 99999)}"
        if not HomestayApplication.objects.filter(certificate_number=number).exists():
            return number


def latest_inspection_order(application):
    return (
        InspectionOrder.objects.select_related('assigned_to')
        .filter(application=application)
        .order_by('-created_at', '-id')
        .first()
    )


def is_acknowledged(order):
    return ApplicationAction.objects.filter(
        application_id=order.application_id,
        action='inspection_acknowledged',
        created_at__gte=order.created_at,
    ).exists()


# ============================================================================
# AUTHENTICATION
# ============================================================================

@ensure_csrf_cookie
@require_http_methods(["GET"])
def csrf_view(request):
    return JsonResponse({'detail': 'CSRF cookie set'})


@require_http_methods(["POST"])
@api_view
def login_view(request):
    data = validate_payload(LoginForm, parse_json_body(request))
    user = authenticate(request, username=data['username'], password=data['password'])
    if user is None:
        logger.warning(f"Failed login attempt for {data['username']}")
        raise AuthenticationRequired('Invalid username or password')

    login(request, user)
    logger.info(f"User {user.username} logged in")
    return JsonResponse({'user': serialize_user(user)})


@require_http_methods(["POST"])
@api_view
def logout_view(request):
    if request.user.is_authenticated:
        logger.info(f"User {request.user.username} logged out")
    logout(request)
    return JsonResponse({'message': 'Logged out successfully'})


@require_http_methods(["GET"])
@api_view
@api_login_required
def me_view(request):
    return JsonResponse({'user': serialize_user(request.user)})


# ============================================================================
# OWNER - DRAFTS, DOCUMENTS, SUBMISSION
# ============================================================================

@require_http_methods(["POST"])
@api_view
@role_required(workflow.PROPERTY_OWNER, message='Only property owners can create applications')
def create_draft(request):
    user = request.user
    existing = HomestayApplication.objects.filter(owner=user).order_by('-created_at').first()
    if existing is not None:
        if existing.status == workflow.DRAFT:
            return JsonResponse({'application': serialize_application(existing), 'message': 'Existing draft loaded'})
        raise DuplicateApplication(
            f'You already have an application ({existing.application_number}) in status "{existing.status}". '
            'Amendments are required instead of creating a new application.',
            existingApplicationId=existing.pk,
            status=existing.status,
        )

    application = HomestayApplication(
        owner=user,
        owner_name=user.display_name,
        owner_mobile=user.mobile or '',
        owner_email=user.email or '',
    )
    form = bind_draft_form(application, parse_json_body(request))
    if not form.is_valid():
        raise ValidationFailed(first_error(form))

    application = form.save(commit=False)
    application.status = workflow.DRAFT
    application.current_stage = workflow.STAGE_FOR_STATUS[workflow.DRAFT]
    application.total_rooms = application.compute_total_rooms()
    application.save()
    logger.info(f"Draft application {application.pk} created by {user.username}")
    return JsonResponse({'application': serialize_application(application), 'message': 'Draft created'}, status=201)


@require_http_methods(["PATCH"])
@api_view
@role_required(workflow.PROPERTY_OWNER)
def update_draft(request, pk):
    application = get_application(pk)
    if application.owner_id != request.user.pk:
        raise Forbidden('Access denied')
    if application.status != workflow.DRAFT:
        raise InvalidTransition('Only draft applications can be edited', status=application.status)

    form = bind_draft_form(application, parse_json_body(request))
    if not form.is_valid():
        raise ValidationFailed(first_error(form))

    application = form.save(commit=False)
    application.total_rooms = application.compute_total_rooms()
    application.save()
    return JsonResponse({'application': serialize_application(application), 'message': 'Draft updated successfully'})


@require_http_methods(["GET", "POST"])
@api_view
@api_login_required
def application_documents(request, pk):
    application = get_application(pk)
    user = request.user

    if request.method == 'GET':
        ensure_can_view(user, application)
        documents = application.documents.all()
        return JsonResponse({'documents': [serialize_document(doc) for doc in documents]})

    if user.role != workflow.PROPERTY_OWNER or application.owner_id != user.pk:
        raise Forbidden('Access denied')
    if application.status != workflow.DRAFT and application.status not in workflow.CORRECTION_STATUSES:
        raise InvalidTransition(
            'Documents can only be changed while the application is a draft or sent back for corrections',
            status=application.status,
        )

    form = DocumentForm(data=snake_case_keys(parse_json_body(request)))
    if not form.is_valid():
        raise ValidationFailed(first_error(form))
    document = form.save(commit=False)
    document.application = application

    error = validate_documents(list(application.documents.all()) + [document], document_policy(application))
    if error:
        raise ValidationFailed(error)

    document.save()
    return JsonResponse({'document': serialize_document(document)}, status=201)


@require_http_methods(["POST"])
@api_view
@api_login_required
def submit_application(request, pk):
    application = get_application(pk)
    workflow.authorize(request.user, application, 'submit', district_config())

    validate_room_configuration(application)
    error = validate_documents(application.documents.all(), document_policy(application), require_complete=True)
    if error:
        raise ValidationFailed(error)

    now = timezone.now()
    routed_district = derive_routing_label(application.district, application.tehsil)
    updates = fee_fields_for(application)
    updates['district'] = routed_district
    updates['total_rooms'] = application.compute_total_rooms()
    if not application.application_number:
        updates['application_number'] = format_application_number(application.pk, routed_district, now.year)

    application = perform_transition(application, request.user, 'submit', updates=updates)
    return transition_response(application, 'Application submitted successfully')


def resubmit_application(request, application):
    """Owner sends corrections back; the payload may carry edited fields"""
    workflow.authorize(request.user, application, 'resubmit', district_config())

    form = bind_draft_form(application, parse_json_body(request))
    if not form.is_valid():
        raise ValidationFailed(first_error(form))
    edited = form.save(commit=False)

    validate_room_configuration(edited)
    error = validate_documents(edited.documents.all(), document_policy(edited), require_complete=True)
    if error:
        raise ValidationFailed(error)

    cycle = application.correction_submission_count + 1
    updates = {name: getattr(edited, name) for name in form.Meta.fields}
    updates.update(fee_fields_for(edited))
    updates.update({
        'total_rooms': edited.compute_total_rooms(),
        'correction_submission_count': cycle,
        'clarification_requested': '',
        'dtdo_remarks': '',
        'district_notes': '',
    })

    application = perform_transition(
        application, request.user, 'resubmit', updates=updates, feedback=f"{RESUBMIT_CONSENT} (cycle {cycle})",
    )
    return transition_response(application, 'Application resubmitted successfully')


@require_http_methods(["GET", "PATCH"])
@api_view
@api_login_required
def application_detail(request, pk):
    application = get_application(pk)
    if request.method == 'PATCH':
        return resubmit_application(request, application)

    ensure_can_view(request.user, application)
    return JsonResponse({
        'application': serialize_application(application),
        'documents': [serialize_document(doc) for doc in application.documents.all()],
    })


@require_http_methods(["GET"])
@api_view
@api_login_required
def inspection_schedule(request, pk):
    application = get_application(pk)
    ensure_can_view(request.user, application)

    order = latest_inspection_order(application)
    if order is None:
        raise NotFound('No inspection scheduled yet')
    return JsonResponse({
        'inspection': serialize_inspection_order(order),
        'acknowledged': is_acknowledged(order),
    })


@require_http_methods(["POST"])
@api_view
@api_login_required
def acknowledge_inspection(request, pk):
    application = get_application(pk)
    workflow.authorize(request.user, application, 'acknowledge_inspection', district_config())

    order = latest_inspection_order(application)
    if order is None:
        raise NotFound('No inspection scheduled yet')
    if is_acknowledged(order):
        return transition_response(application, 'Inspection already acknowledged', acknowledged=True)

    application = perform_transition(
        application, request.user, 'acknowledge_inspection',
        feedback=f"Owner acknowledged the inspection on {format_date(order.inspection_date)}",
    )
    return transition_response(application, 'Inspection acknowledged', acknowledged=True)


@require_http_methods(["GET", "POST"])
@api_view
@api_login_required
def application_payments(request, pk):
    application = get_application(pk)

    if request.method == 'GET':
        ensure_can_view(request.user, application)
        return JsonResponse({'payments': [serialize_payment(payment) for payment in application.payments.all()]})

    workflow.authorize(request.user, application, 'initiate_payment', district_config())
    data = validate_payload(PaymentForm, parse_json_body(request))
    if application.total_fee is None:
        raise ValidationFailed('Fee has not been calculated for this application')

    with transaction.atomic():
        payment = Payment.objects.create(
            application=application,
            amount=application.total_fee,
            payment_gateway=data.get('payment_gateway') or 'himkosh',
            gateway_transaction_id=data.get('gateway_transaction_id') or '',
            payment_status='pending',
        )
        application = perform_transition(
            application, request.user, 'initiate_payment',
            feedback=f"Payment of INR {payment.amount} initiated via {payment.get_payment_gateway_display()}",
        )
    return transition_response(application, 'Payment initiated', status=201, payment=serialize_payment(payment))


# ============================================================================
# SHARED - LISTING, SEARCH, REVIEW, INSPECTION
# ============================================================================

@require_http_methods(["GET"])
@api_view
@api_login_required
def application_list(request):
    applications = scoped_applications(request.user)
    status = request.GET.get('status', '')
    if status and status != 'all':
        applications = applications.filter(status__in=workflow.stored_status_values(status))
    return application_list_response(
        applications.order_by('-created_at'),
        with_corrections=request.user.role in workflow.DISTRICT_ROLES,
    )


@require_http_methods(["GET"])
@api_view
@role_required(*workflow.STAFF_ROLES)
def application_monitoring_list(request):
    user = request.user
    applications = HomestayApplication.objects.select_related('owner')
    if user.role in workflow.DISTRICT_ROLES:
        if not user.district:
            raise ValidationFailed('Your account is not assigned to a district')
        applications = applications.filter(district=user.district)
    return application_list_response(applications.order_by('-created_at'))


@require_http_methods(["POST"])
@api_view
@role_required(*workflow.STAFF_ROLES)
def application_search(request):
    data = validate_payload(SearchForm, parse_json_body(request))
    applications = HomestayApplication.objects.select_related('owner')
    has_filter = False

    if data['application_number']:
        applications = applications.filter(application_number__iexact=data['application_number'].strip())
        has_filter = True
    if data['owner_mobile']:
        applications = applications.filter(owner_mobile=data['owner_mobile'].strip())
        has_filter = True
    if data['owner_aadhaar']:
        applications = applications.filter(owner_aadhaar=data['owner_aadhaar'].strip())
        has_filter = True
    status = (data['status'] or '').strip().lower()
    if status and status != 'all':
        applications = applications.filter(status__in=workflow.stored_status_values(status))
        has_filter = True

    # A date range wins over month/year, which only apply as a pair
    if data['from_date'] or data['to_date']:
        if data['from_date']:
            applications = applications.filter(created_at__date__gte=data['from_date'])
        if data['to_date']:
            applications = applications.filter(created_at__date__lte=data['to_date'])
        has_filter = True
    elif data['month'] and data['year']:
        applications = applications.filter(created_at__year=data['year'], created_at__month=data['month'])
        has_filter = True

    # Other quick-view sizes are ignored
    recent_limit = data['recent_limit'] if data['recent_limit'] in RECENT_LIMIT_CHOICES else None

    if not has_filter and recent_limit is None:
        raise ValidationFailed(SEARCH_FILTER_MESSAGE)

    user = request.user
    if user.role in workflow.DISTRICT_ROLES:
        applications = applications.filter(
            district_filter('district', require_district(user), district_config())
        )

    cap = recent_limit or getattr(settings, 'HOMESTAY_SEARCH_RESULT_CAP', 200)
    return application_list_response(applications.order_by('-created_at')[:cap])


@require_http_methods(["POST"])
@api_view
@api_login_required
def review_application(request, pk):
    data = validate_payload(ReviewForm, parse_json_body(request))
    application = get_application(pk)
    action = workflow.resolve_review_action(request.user.role, data['action'])
    application = perform_transition(application, request.user, action, remarks=data['comments'])
    if application.status == workflow.APPROVED:
        close_service_request(application, request.user)
    message ='Application approved' if data['action'] == 'approve' else 'Application rejected'
    return transition_response(application, message)


@require_http_methods(["POST"])
@api_view
@api_login_required
def send_back_application(request, pk):
    data = validate_payload(SendBackForm, parse_json_body(request))
    application = get_application(pk)
    application = perform_transition(application, request.user, 'send_back', remarks=data['feedback'])
    return transition_response(application, 'Application sent back for corrections')


@require_http_methods(["POST"])
@api_view
@api_login_required
def move_to_inspection(request, pk):
    data = validate_payload(MoveToInspectionForm, parse_json_body(request))
    application = get_application(pk)
    scheduled_date = data['scheduled_date'] or timezone.now()
    notes = data['notes'] or ''

    application = perform_transition(
        application, request.user, 'move_to_inspection', remarks=notes,
        updates={'site_inspection_scheduled_date': scheduled_date, 'site_inspection_notes': notes},
        feedback=notes or f"Site inspection scheduled for {format_date(scheduled_date)}",
        notification_extras={'inspection_date': format_date(scheduled_date)},
    )
    return transition_response(application, 'Site inspection scheduled')


@require_http_methods(["POST"])
@api_view
@api_login_required
def complete_inspection(request, pk):
    data = validate_payload(CompleteInspectionForm, parse_json_body(request))
    application = get_application(pk)
    workflow.authorize(request.user, application, 'complete_inspection', district_config())

    findings = data['findings'] if isinstance(data['findings'], dict) else {}
    target, event, issues = workflow.resolve_inspection_outcome(
        data['outcome'], findings.get('issuesFound'), data['notes'],
    )
    application = perform_transition(
        application, request.user, 'complete_inspection', remarks=issues, target_status=target,
        updates={
            'site_inspection_outcome': data['outcome'],
            'site_inspection_findings': findings or None,
            'site_inspection_notes': data['notes'] or '',
        },
        issues_found=findings.get('issuesFound') if target != workflow.PAYMENT_PENDING else None,
        feedback=data['notes'] or issues,
        notification=event,
    )
    return transition_response(application, 'Inspection completed')


@require_http_methods(["GET"])
@api_view
@api_login_required
def application_timeline(request, pk):
    application = get_application(pk)
    if not can_view_timeline(request.user, application):
        raise Forbidden('Access denied')
    return JsonResponse({'timeline': get_timeline(application)})


@require_http_methods(["GET"])
@api_view
@api_login_required
def upload_policy_view(request):
    return JsonResponse(get_upload_policy())


@require_http_methods(["GET"])
@api_view
@role_required(*workflow.STAFF_ROLES)
def application_export_excel(request):
    """Export the caller's applications to Excel"""
    applications = scoped_applications(request.user).order_by('-created_at')
    status = request.GET.get('status', '')
    if status and status != 'all':
        applications = applications.filter(status__in=workflow.stored_status_values(status))

    # Create workbook
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = "Applications"

    # Styling
    header_fill = PatternFill(start_color="3498db", end_color="3498db", fill_type="solid")
    header_font = Font(bold=True, color="FFFFFF", size=11)
    border = Border(
        left=Side(style='thin'),
        right=Side(style='thin'),
        top=Side(style='thin'),
        bottom=Side(style='thin')
    )

    headers = [
        'Application Number', 'Property', 'Owner', 'Mobile', 'District', 'Category',
        'Status', 'Submitted', 'Approved', 'Total Fee', 'Certificate Number'
    ]

    for col_num, header in enumerate(headers, 1):
        cell = ws.cell(row=1, column=col_num)
        cell.value = header
        cell.fill = header_fill
        cell.font = header_font
        cell.alignment = Alignment(horizontal='center', vertical='center')
        cell.border = border

    for row_num, application in enumerate(applications, 2):
        data = [
            application.application_number or '',
            application.property_name,
            application.owner_name,
            application.owner_mobile,
            application.district,
            application.get_category_display(),
            application.get_status_display(),
            timezone.localtime(application.submitted_at).strftime('%Y-%m-%d') if application.submitted_at else '',
            timezone.localtime(application.approved_at).strftime('%Y-%m-%d') if application.approved_at else '',
            float(application.total_fee) if application.total_fee is not None else '',
            application.certificate_number or '',
        ]

        for col_num, value in enumerate(data, 1):
            cell = ws.cell(row=row_num, column=col_num)
            cell.value = value
            cell.border = border
            cell.alignment = Alignment(vertical='center')

    for col_num in range(1, len(headers) + 1):
        column_letter = get_column_letter(col_num)
        ws.column_dimensions[column_letter].width = 18

    response = HttpResponse(
        content_type='application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'
    )
    response['Content-Disposition'] = (
        f'attachment; filename=homestay_applications_{timezone.now().strftime("%Y%m%d_%H%M%S")}.xlsx'
    )

    wb.save(response)
    return response


# ============================================================================
# DEALING ASSISTANT
# ============================================================================

def get_da_application(user, pk):
    if not user.district:
        raise Forbidden('DA must be assigned to a district')
    application = get_application(pk)
    if not districts_match(user.district, application.district, district_config()):
        raise Forbidden('You can only process applications from your district')
    return application


@require_http_methods(["GET"])
@api_view
@role_required(workflow.DEALING_ASSISTANT)
def da_applications(request):
    user = request.user
    if not user.district:
        raise Forbidden('DA must be assigned to a district')
    applications = (
        HomestayApplication.objects.select_related('owner')
        .filter(district_filter('district', user.district, district_config()))
        .exclude(status=workflow.DRAFT)
        .order_by('-created_at')
    )
    return application_list_response(applications, with_corrections=True)


@require_http_methods(["GET"])
@api_view
@role_required(workflow.DEALING_ASSISTANT)
def da_application_detail(request, pk):
    application = get_da_application(request.user, pk)
    return JsonResponse({
        'application': serialize_application(application),
        'documents': [serialize_document(doc) for doc in application.documents.all()],
        'timeline': get_timeline(application),
        'owner': serialize_user(application.owner),
    })


@require_http_methods(["POST"])
@api_view
@role_required(workflow.DEALING_ASSISTANT)
def da_start_scrutiny(request, pk):
    application = get_da_application(request.user, pk)
    application = perform_transition(application, request.user, 'start_scrutiny')
    return transition_response(application, 'Scrutiny started')


@require_http_methods(["POST"])
@api_view
@role_required(workflow.DEALING_ASSISTANT)
def da_save_scrutiny(request, pk):
    application = get_da_application(request.user, pk)
    if application.status != workflow.UNDER_SCRUTINY:
        raise InvalidTransition(
            'Document updates are locked once the application leaves scrutiny', status=application.status,
        )

    data = validate_payload(ScrutinyForm, parse_json_body(request))
    now = timezone.now()
    with transaction.atomic():
        for item in data['verifications']:
            document = ApplicationDocument.objects.filter(
                pk=item['documentId'], application=application,
            ).first()
            if document is None:
                raise NotFound('Document not found')
            document.verification_status = item['status']
            document.verification_notes = (item.get('notes') or '').strip()
            document.verified_by = request.user
            document.verification_date = now
            document.save()

    return JsonResponse({
        'documents': [serialize_document(doc) for doc in application.documents.all()],
        'message': 'Scrutiny progress saved',
    })


@require_http_methods(["POST"])
@api_view
@role_required(workflow.DEALING_ASSISTANT)
def da_forward_to_dtdo(request, pk):
    data = validate_payload(RemarksForm, parse_json_body(request))
    application = get_da_application(request.user, pk)
    rule = workflow.authorize(request.user, application, 'forward_to_dtdo', district_config())
    workflow.clean_remarks(rule, data['remarks'])

    documents = list(application.documents.all())
    if not documents:
        raise ValidationFailed('Upload and verify required documents before forwarding')
    if any(doc.verification_status == 'pending' for doc in documents):
        raise ValidationFailed('Verify every document (mark Verified / Needs correction / Rejected) before forwarding')

    application = perform_transition(application, request.user, 'forward_to_dtdo', remarks=data['remarks'])
    return transition_response(application, 'Application forwarded to DTDO')


@require_http_methods(["POST"])
@api_view
@role_required(workflow.DEALING_ASSISTANT)
def da_send_back(request, pk):
    data = validate_payload(DaSendBackForm, parse_json_body(request))
    application = get_da_application(request.user, pk)
    application = perform_transition(application, request.user, 'da_send_back', remarks=data['reason'])
    return transition_response(application, 'Application sent back to the applicant')


@require_http_methods(["GET"])
@api_view
@role_required(workflow.DEALING_ASSISTANT)
def da_inspections(request):
    orders = (
        InspectionOrder.objects.select_related('application', 'assigned_to')
        .filter(assigned_to=request.user)
        .order_by('-inspection_date')
    )
    reported = set(
        InspectionReport.objects.filter(inspection_order__in=orders).values_list('inspection_order_id', flat=True)
    )
    inspections = []
    for order in orders:
        item = serialize_inspection_order(order)
        item['application'] = serialize_application(order.application)
        item['reportSubmitted'] = order.pk in reported
        inspections.append(item)
    return JsonResponse({'inspections': inspections})


@require_http_methods(["POST"])
@api_view
@role_required(workflow.DEALING_ASSISTANT)
def da_submit_inspection_report(request, order_id):
    user = request.user
    order = InspectionOrder.objects.select_related('application').filter(pk=order_id).first()
    if order is None:
        raise NotFound('Inspection order not found')
    if order.assigned_to_id != user.pk:
        raise Forbidden('You are not assigned to this inspection')
    if InspectionReport.objects.filter(inspection_order=order).exists():
        raise ValidationFailed('Inspection report already submitted for this order')

    application = order.application
    workflow.authorize(user, application, 'submit_inspection_report', district_config())

    data = validate_payload(InspectionReportForm, parse_json_body(request))
    actual_date = data['actual_inspection_date']
    today = timezone.localdate()
    scheduled_day = timezone.localtime(order.inspection_date).date()

    if actual_date > today:
        raise ValidationFailed('Actual inspection date cannot be in the future')

    mandatory_remarks = data.get('mandatory_remarks') or ''
    if actual_date < scheduled_day:
        reason = (data.get('early_inspection_reason') or '').strip()
        if not data.get('early_inspection_override'):
            raise ValidationFailed(
                'Actual inspection date is before the scheduled date. Confirm the early inspection override to continue.'
            )
        if scheduled_day - actual_date > timedelta(days=7):
            raise ValidationFailed('Early inspections can only be recorded up to 7 days before the scheduled date')
        if len(reason) < 15:
            raise ValidationFailed('Provide a reason of at least 15 characters for the early inspection')
        note = f"[Early inspection override] {reason}"
        mandatory_remarks = f"{mandatory_remarks}\n\n{note}" if mandatory_remarks else note

    recommendation = data.get('recommendation') or 'approve'
    outcome = {'approve': 'recommended', 'raise_objections': 'objection'}.get(recommendation, 'completed')
    now = timezone.now()

    with transaction.atomic():
        report = InspectionReport.objects.create(
            inspection_order=order,
            application=application,
            submitted_by=user,
            submitted_date=now,
            actual_inspection_date=actual_date,
            room_count_verified=data.get('room_count_verified', False),
            actual_room_count=data.get('actual_room_count'),
            category_meets_standards=data.get('category_meets_standards', False),
            recommended_category=data.get('recommended_category') or '',
            mandatory_checklist=data.get('mandatory_checklist'),
            mandatory_remarks=mandatory_remarks,
            desirable_checklist=data.get('desirable_checklist'),
            desirable_remarks=data.get('desirable_remarks') or '',
            fire_safety_compliant=data.get('fire_safety_compliant', False),
            structural_safety=data.get('structural_safety', False),
            overall_satisfactory=data.get('overall_satisfactory', False),
            recommendation=recommendation,
            detailed_findings=data.get('detailed_findings') or '',
        )
        order.status = 'completed'
        order.save(update_fields=['status', 'updated_at'])

        # The owner may never have acknowledged the visit
        if not is_acknowledged(order):
            record_action(
                application, None, 'inspection_acknowledged',
                workflow.INSPECTION_SCHEDULED, workflow.INSPECTION_SCHEDULED,
                feedback='Acknowledged automatically when the inspection report was filed',
            )

        application = perform_transition(
            application, user, 'submit_inspection_report',
            updates={'site_inspection_outcome': outcome},
            feedback=report.detailed_findings or 'Inspection report submitted',
        )

    return transition_response(
        application, 'Inspection report submitted', status=201, report=serialize_inspection_report(report),
    )


# ============================================================================
# DTDO
# ============================================================================

def get_dtdo_application(user, pk):
    require_district(user)
    application = get_application(pk)
    if not districts_match(user.district, application.district, district_config()):
        raise Forbidden('You can only process applications from your district')
    return application


def latest_inspection_report(application):
    return (
        InspectionReport.objects.select_related('inspection_order')
        .filter(application=application)
        .order_by('-submitted_date', '-id')
        .first()
    )


@require_http_methods(["GET"])
@api_view
@role_required(*workflow.DTDO_ROLES)
def dtdo_applications(request):
    user = request.user
    require_district(user)
    applications = (
        HomestayApplication.objects.select_related('owner')
        .filter(district_filter('district', user.district, district_config()))
        .exclude(status=workflow.DRAFT)
        .order_by('-created_at')
    )
    return application_list_response(applications, with_corrections=True)


@require_http_methods(["GET"])
@api_view
@role_required(*workflow.DTDO_ROLES)
def dtdo_application_detail(request, pk):
    application = get_dtdo_application(request.user, pk)
    return JsonResponse({
        'application': serialize_application(application),
        'documents': [serialize_document(doc) for doc in application.documents.all()],
        'inspection': serialize_inspection_order(latest_inspection_order(application)),
        'inspectionReport': serialize_inspection_report(latest_inspection_report(application)),
        'timeline': get_timeline(application),
        'owner': serialize_user(application.owner),
    })


def dtdo_decision(request, pk, action, message):
    data = validate_payload(RemarksForm, parse_json_body(request))
    application = get_dtdo_application(request.user, pk)
    application = perform_transition(application, request.user, action, remarks=data['remarks'])
    return transition_response(application, message)


@require_http_methods(["POST"])
@api_view
@role_required(*workflow.DTDO_ROLES)
def dtdo_accept(request, pk):
    return dtdo_decision(request, pk, 'dtdo_accept', 'Application accepted. Schedule the site inspection next.')


@require_http_methods(["POST"])
@api_view
@role_required(*workflow.DTDO_ROLES)
def dtdo_reject(request, pk):
    return dtdo_decision(request, pk, 'dtdo_reject', 'Application rejected')


@require_http_methods(["POST"])
@api_view
@role_required(*workflow.DTDO_ROLES)
def dtdo_revert(request, pk):
    return dtdo_decision(request, pk, 'dtdo_revert', 'Application reverted to the applicant')


def available_das_for(user):
    config = district_config()
    candidates = User.objects.filter(role=workflow.DEALING_ASSISTANT, is_active=True).order_by('full_name', 'username')
    return [da for da in candidates if districts_match(da.district, user.district, config)]


@require_http_methods(["GET"])
@api_view
@role_required(*workflow.DTDO_ROLES)
def dtdo_available_das(request):
    require_district(request.user)
    return JsonResponse({'das': [serialize_user(da) for da in available_das_for(request.user)]})


@require_http_methods(["POST"])
@api_view
@role_required(*workflow.DTDO_ROLES)
def dtdo_schedule_inspection(request):
    user = request.user
    data = validate_payload(ScheduleInspectionForm, parse_json_body(request))
    application = get_dtdo_application(user, data['application_id'])
    workflow.authorize(user, application, 'schedule_inspection', district_config())

    da = next((da for da in available_das_for(user) if da.pk == data['assigned_to']), None)
    if da is None:
        raise ValidationFailed('Selected DA is not available for your district')

    inspection_date = data['inspection_date']
    instructions = data['special_instructions'] or ''
    now = timezone.now()

    with transaction.atomic():
        order = InspectionOrder.objects.create(
            application=application,
            scheduled_by=user,
            scheduled_date=now,
            assigned_to=da,
            assigned_date=now,
            inspection_date=inspection_date,
            inspection_address=application.address,
            special_instructions=instructions,
            status='scheduled',
        )
        application = perform_transition(
            application, user, 'schedule_inspection',
            updates={'da': da, 'site_inspection_scheduled_date': inspection_date},
            feedback=f"Inspection scheduled on {format_date(inspection_date)} with {da.display_name}",
            notification_extras={'inspection_date': format_date(inspection_date)},
        )
        label = application.application_number or f"#{application.pk}"
        create_in_app_notification(
            da, application, 'New Inspection Assigned',
            f"You have been assigned to inspect {application.property_name or 'a property'} ({label}) "
            f"on {format_date(inspection_date)}.",
            event='inspection_scheduled',
        )
        create_in_app_notification(
            application.owner, application, 'Inspection Scheduled',
            f"A site inspection for application {label} is scheduled on {format_date(inspection_date)}.",
            event='inspection_scheduled',
        )

    return transition_response(
        application, 'Inspection scheduled', status=201, inspection=serialize_inspection_order(order),
    )


@require_http_methods(["GET"])
@api_view
@role_required(*workflow.DTDO_ROLES)
def dtdo_inspection_report(request, pk):
    application = get_dtdo_application(request.user, pk)
    report = latest_inspection_report(application)
    if report is None:
        raise NotFound('Inspection report not found')
    return JsonResponse({
        'application': serialize_application(application),
        'inspection': serialize_inspection_order(report.inspection_order),
        'report': serialize_inspection_report(report),
    })


@require_http_methods(["POST"])
@api_view
@role_required(*workflow.DTDO_ROLES)
def dtdo_report_approve(request, pk):
    return dtdo_decision(request, pk, 'verify_for_payment', 'Application verified for payment')


@require_http_methods(["POST"])
@api_view
@role_required(*workflow.DTDO_ROLES)
def dtdo_report_reject(request, pk):
    return dtdo_decision(request, pk, 'reject_inspection_report', 'Application rejected')


@require_http_methods(["POST"])
@api_view
@role_required(*workflow.DTDO_ROLES)
def dtdo_report_raise_objections(request, pk):
    return dtdo_decision(request, pk, 'raise_objections', 'Objections sent to the applicant')


# ============================================================================
# OWNER - SERVICE CENTER & EXISTING OWNERS
# ============================================================================

@require_http_methods(["GET", "POST"])
@api_view
@role_required(
    workflow.PROPERTY_OWNER, workflow.ADMIN, workflow.SUPER_ADMIN,
    message='Service Center is currently available for property owners.',
)
def service_center(request):
    user = request.user

    if request.method == 'GET':
        applications = HomestayApplication.objects.filter(
            status__in=workflow.stored_status_values(workflow.APPROVED),
        ).order_by('-created_at')
        if user.role == workflow.PROPERTY_OWNER:
            applications = applications.filter(owner=user)
        today = timezone.localdate()
        return JsonResponse({'applications': [service_summary(app, today) for app in applications]})

    if user.role != workflow.PROPERTY_OWNER:
        raise Forbidden('Only property owners can initiate service requests.')

    data = validate_payload(ServiceRequestForm, parse_json_body(request))
    service_request, parent = open_service_request(
        user, data['base_application_id'], data['service_type'],
        note=data['note'], room_delta=data['room_delta'],
    )
    return JsonResponse({
        'message': 'Service request created.',
        'serviceRequest': {
            'id': service_request.pk,
            'applicationNumber': service_request.application_number,
            'applicationKind': service_request.application_kind,
            'status': service_request.status,
        },
        'application': serialize_application(service_request),
        'summary': service_summary(parent),
    }, status=201)


@require_http_methods(["POST"])
@api_view
@role_required(workflow.PROPERTY_OWNER, message='Only property owners can submit an existing certificate')
def existing_owner_intake(request):
    data = validate_payload(ExistingOwnerForm, parse_json_body(request))
    application = onboard_existing_owner(request.user, data)
    return JsonResponse({
        'message': 'Existing owner submission received. An Admin-RC editor will verify the certificate shortly.',
        'application': serialize_application(application),
    }, status=201)


@require_http_methods(["GET"])
@api_view
@api_login_required
def existing_owner_settings(request):
    return JsonResponse({'minIssueDate': existing_rc_cutoff()})


@require_http_methods(["GET"])
@api_view
@api_login_required
def existing_owner_active(request):
    application = active_existing_rc_request(request.user)
    return JsonResponse({'application': serialize_application(application) if application else None})


# ============================================================================
# PAYMENTS
# ============================================================================

@require_http_methods(["POST"])
@api_view
@role_required(*workflow.INSPECTION_OFFICER_ROLES)
def confirm_payment(request, pk):
    user = request.user
    payment = Payment.objects.select_related('application__owner').filter(pk=pk).first()
    if payment is None:
        raise NotFound('Payment not found')
    application = payment.application
    workflow.authorize(user, application, 'confirm_payment', district_config())
    if payment.payment_status == 'success':
        raise InvalidTransition('Payment already confirmed')

    data = validate_payload(ConfirmPaymentForm, parse_json_body(request))
    now = timezone.now()
    issue_date = timezone.localdate()
    updates = certificate_updates(application, issue_date)
    if updates:
        updates['certificate_number'] = generate_certificate_number(issue_date.year)

    with transaction.atomic():
        payment.payment_status = 'success'
        payment.completed_at = now
        payment.confirmed_by = user
        payment.receipt_number = data['receipt_number'] or payment.receipt_number
        payment.gateway_transaction_id = data['gateway_transaction_id'] or payment.gateway_transaction_id
        payment.save()

        application = perform_transition(
            application, user, 'confirm_payment', updates=updates,
            feedback=f"Payment of INR {payment.amount} confirmed",
        )
        if updates:
            record_action(
                application, user, 'certificate_issued', workflow.APPROVED, workflow.APPROVED,
                feedback=(
                    f"Certificate {application.certificate_number} issued on {issue_date:%d %b %Y} "
                    f"(valid till {application.certificate_expiry_date:%d %b %Y})"
                ),
            )
        close_service_request(application, user)

    if updates:
        logger.info(f"Payment {payment.pk} confirmed, certificate {application.certificate_number} issued")
        message = 'Payment confirmed and certificate issued'
    else:
        logger.info(f"Payment {payment.pk} confirmed for {application.application_kind} application {application.pk}")
        message = 'Payment confirmed'
    return transition_response(application, message, payment=serialize_payment(payment))


@require_http_methods(["GET"])
@api_view
@role_required(*(workflow.INSPECTION_OFFICER_ROLES + (workflow.ADMIN, workflow.SUPER_ADMIN)))
def pending_payments(request):
    user = request.user
    payments = (
        Payment.objects.select_related('application')
        .filter(
            payment_status__in=['pending', 'pending_verification'],
            application__status__in=workflow.stored_status_values(workflow.PAYMENT_PENDING),
        )
        .order_by('initiated_at')
    )
    if user.role in workflow.DISTRICT_ROLES:
        payments = payments.filter(district_filter('application__district', require_district(user), district_config()))

    results = []
    for payment in payments:
        item = serialize_payment(payment)
        item['application'] = serialize_application(payment.application)
        results.append(item)
    return JsonResponse({'payments': results})
