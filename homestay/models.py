"""
HP Homestay Portal - Django Models
Applications, their documents, the action log, inspections, payments and notifications
"""

import json
import logging

from django.db import models
from django.contrib.auth.models import AbstractUser
from django.core.validators import MinValueValidator, MaxValueValidator

from . import workflow


logger = logging.getLogger(__name__)


# ============================================================================
# CORE MODELS - User Management
# ============================================================================

class User(AbstractUser):
    """Portal account for property owners and department staff"""
    role = models.CharField(max_length=40, choices=workflow.ROLE_CHOICES, default=workflow.PROPERTY_OWNER)
    full_name = models.CharField(max_length=200, blank=True)
    mobile = models.CharField(max_length=15, unique=True, null=True, blank=True)
    district = models.CharField(max_length=100, blank=True)
    designation = models.CharField(max_length=150, blank=True)
    aadhaar_number = models.CharField(max_length=12, unique=True, null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'users'

    def __str__(self):
        return f"{self.display_name} ({self.username})"

    @property
    def display_name(self):
        return self.full_name or self.get_full_name() or self.username or self.mobile or 'Officer'

    @property
    def is_property_owner(self):
        return self.role == workflow.PROPERTY_OWNER

    @property
    def is_staff_role(self):
        return self.role in workflow.STAFF_ROLES

    @property
    def is_district_scoped(self):
        return self.role in workflow.DISTRICT_ROLES


# ============================================================================
# HOMESTAY APPLICATIONS
# ============================================================================

class HomestayApplication(models.Model):
    """Registration application for a homestay property"""
    APPLICATION_KIND_CHOICES = [
        ('new_registration', 'New Registration'),
        ('add_rooms', 'Add Rooms'),
        ('delete_rooms', 'Delete Rooms'),
        ('cancel_certificate', 'Cancel Certificate'),
        ('change_category', 'Change Category'),
        ('renewal', 'Renewal'),
        ('existing_rc_onboarding', 'Existing RC Onboarding'),
    ]

    CATEGORY_CHOICES = [
        ('diamond', 'Diamond'),
        ('gold', 'Gold'),
        ('silver', 'Silver'),
    ]

    LOCATION_TYPE_CHOICES = [
        ('mc', 'Municipal Corporation'),
        ('tcp', 'TCP/SDA/Nagar Panchayat'),
        ('gp', 'Gram Panchayat'),
    ]

    GENDER_CHOICES = [
        ('male', 'Male'),
        ('female', 'Female'),
        ('other', 'Other'),
    ]

    INSPECTION_OUTCOME_CHOICES = [
        ('approved', 'Approved'),
        ('corrections_needed', 'Corrections Needed'),
        ('rejected', 'Rejected'),
        ('recommended', 'Recommended'),
        ('objection', 'Objection'),
        ('completed', 'Completed'),
    ]

    application_number = models.CharField(max_length=50, unique=True, null=True, blank=True)
    application_kind = models.CharField(max_length=40, choices=APPLICATION_KIND_CHOICES, default='new_registration')

    # Classification
    category = models.CharField(max_length=20, choices=CATEGORY_CHOICES, default='silver')
    location_type = models.CharField(max_length=10, choices=LOCATION_TYPE_CHOICES, default='gp')
    project_type = models.CharField(max_length=50, blank=True)

    # Ownership
    owner = models.ForeignKey(User, on_delete=models.PROTECT, related_name='applications')
    owner_name = models.CharField(max_length=200, blank=True)
    owner_mobile = models.CharField(max_length=15, blank=True)
    owner_email = models.EmailField(blank=True)
    owner_aadhaar = models.CharField(max_length=12, blank=True)
    owner_gender = models.CharField(max_length=10, choices=GENDER_CHOICES, blank=True)
    guardian_name = models.CharField(max_length=200, blank=True)

    # Property
    property_name = models.CharField(max_length=200, blank=True)
    address = models.TextField(blank=True)
    district = models.CharField(max_length=100, blank=True)
    tehsil = models.CharField(max_length=100, blank=True)
    block = models.CharField(max_length=100, blank=True)
    pincode = models.CharField(max_length=10, blank=True)

    single_bed_rooms = models.PositiveIntegerField(default=0)
    single_bed_beds = models.PositiveIntegerField(default=1)
    single_bed_room_rate = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    double_bed_rooms = models.PositiveIntegerField(default=0)
    double_bed_beds = models.PositiveIntegerField(default=2)
    double_bed_room_rate = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    family_suites = models.PositiveIntegerField(default=0)
    family_suite_beds = models.PositiveIntegerField(default=4)
    family_suite_rate = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    total_rooms = models.PositiveIntegerField(default=0)
    attached_washrooms = models.PositiveIntegerField(default=0)

    distance_airport = models.DecimalField(max_digits=8, decimal_places=2, null=True, blank=True)
    distance_railway = models.DecimalField(max_digits=8, decimal_places=2, null=True, blank=True)
    distance_city_center = models.DecimalField(max_digits=8, decimal_places=2, null=True, blank=True)
    distance_shopping = models.DecimalField(max_digits=8, decimal_places=2, null=True, blank=True)
    distance_bus_stand = models.DecimalField(max_digits=8, decimal_places=2, null=True, blank=True)
    amenities = models.JSONField(default=dict, blank=True)

    certificate_validity_years = models.PositiveSmallIntegerField(
        default=1, validators=[MinValueValidator(1), MaxValueValidator(3)]
    )
    is_pangi_sub_division = models.BooleanField(default=False)

    # Workflow
    status = models.CharField(max_length=40, choices=workflow.STATUS_CHOICES, default=workflow.DRAFT)
    current_stage = models.CharField(max_length=40, default='draft')
    submitted_at = models.DateTimeField(null=True, blank=True)
    approved_at = models.DateTimeField(null=True, blank=True)
    rejection_reason = models.TextField(blank=True)
    clarification_requested = models.TextField(blank=True)
    correction_submission_count = models.PositiveIntegerField(default=0)

    # Officer trail
    da = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='da_applications')
    da_review_date = models.DateTimeField(null=True, blank=True)
    da_forwarded_date = models.DateTimeField(null=True, blank=True)
    da_remarks = models.TextField(blank=True)
    dtdo = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='dtdo_applications')
    dtdo_review_date = models.DateTimeField(null=True, blank=True)
    dtdo_remarks = models.TextField(blank=True)
    district_officer = models.ForeignKey(
        User, on_delete=models.SET_NULL, null=True, blank=True, related_name='district_reviewed_applications'
    )
    district_review_date = models.DateTimeField(null=True, blank=True)
    district_notes = models.TextField(blank=True)
    state_officer = models.ForeignKey(
        User, on_delete=models.SET_NULL, null=True, blank=True, related_name='state_reviewed_applications'
    )
    state_review_date = models.DateTimeField(null=True, blank=True)
    state_notes = models.TextField(blank=True)

    # Inspection
    site_inspection_scheduled_date = models.DateTimeField(null=True, blank=True)
    site_inspection_completed_date = models.DateTimeField(null=True, blank=True)
    site_inspection_officer = models.ForeignKey(
        User, on_delete=models.SET_NULL, null=True, blank=True, related_name='inspected_applications'
    )
    site_inspection_outcome = models.CharField(max_length=30, choices=INSPECTION_OUTCOME_CHOICES, blank=True)
    site_inspection_notes = models.TextField(blank=True)
    site_inspection_findings = models.JSONField(null=True, blank=True)

    # Certificate & fee
    certificate_number = models.CharField(max_length=50, unique=True, null=True, blank=True)
    certificate_issued_date = models.DateField(null=True, blank=True)
    certificate_expiry_date = models.DateField(null=True, blank=True)
    base_fee = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    total_before_discounts = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    validity_discount = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    female_owner_discount = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    pangi_discount = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    total_discount = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    total_fee = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)

    # Service requests against an approved registration
    parent_application = models.ForeignKey(
        'self', on_delete=models.SET_NULL, null=True, blank=True, related_name='service_requests'
    )
    parent_application_number = models.CharField(max_length=50, blank=True)
    parent_certificate_number = models.CharField(max_length=50, blank=True)
    inherited_certificate_valid_upto = models.DateField(null=True, blank=True)
    service_context = models.JSONField(null=True, blank=True)
    service_notes = models.TextField(blank=True)
    service_requested_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'homestay_applications'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status'], name='homestay_app_status_idx'),
            models.Index(fields=['district'], name='homestay_app_district_idx'),
            models.Index(fields=['owner_mobile'], name='homestay_app_mobile_idx'),
            models.Index(fields=['created_at'], name='homestay_app_created_idx'),
        ]

    def __str__(self):
        return f"{self.application_number or f'Draft #{self.pk}'} - {self.property_name or 'Unnamed property'}"

    @classmethod
    def from_db(cls, db, field_names, values):
        instance = super().from_db(db, field_names, values)
        # Keep the stored value for compare-and-swap updates, expose the canonical one
        raw_status = instance.__dict__.get('status')
        if raw_status is not None:
            instance._stored_status = raw_status
            canonical = workflow.resolve_status_alias(raw_status)
            if canonical not in workflow.CANONICAL_STATUSES:
                logger.warning(f"Application {instance.pk} has unrecognised status {raw_status!r}")
            instance.status = canonical
        return instance

    @property
    def stored_status(self):
        return getattr(self, '_stored_status', self.status)

    @property
    def is_terminal(self):
        return self.status in workflow.TERMINAL_STATUSES

    @property
    def is_service_request(self):
        return self.parent_application_id is not None

    @property
    def requires_payment(self):
        return (self.service_context or {}).get('requiresPayment', True) is not False

    def compute_total_rooms(self):
        return (self.single_bed_rooms or 0) + (self.double_bed_rooms or 0) + (self.family_suites or 0)

    def compute_total_beds(self):
        return (
            (self.single_bed_rooms or 0) * (self.single_bed_beds or 0)
            + (self.double_bed_rooms or 0) * (self.double_bed_beds or 0)
            + (self.family_suites or 0) * (self.family_suite_beds or 0)
        )

    def highest_room_rate(self):
        rates = [self.single_bed_room_rate, self.double_bed_room_rate, self.family_suite_rate]
        return max([rate for rate in rates if rate] or [0])


class ApplicationDocument(models.Model):
    """Uploaded file metadata attached to an application"""
    VERIFICATION_STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('verified', 'Verified'),
        ('needs_correction', 'Needs Correction'),
        ('rejected', 'Rejected'),
    ]

    application = models.ForeignKey(HomestayApplication, on_delete=models.CASCADE, related_name='documents')
    document_type = models.CharField(max_length=100)
    file_name = models.CharField(max_length=255)
    file_path = models.CharField(max_length=500)
    file_size = models.PositiveIntegerField(default=0)
    mime_type = models.CharField(max_length=100, blank=True)
    uploaded_at = models.DateTimeField(auto_now_add=True)

    verification_status = models.CharField(max_length=20, choices=VERIFICATION_STATUS_CHOICES, default='pending')
    verification_notes = models.TextField(blank=True)
    verified_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='verified_documents')
    verification_date = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'application_documents'
        ordering = ['uploaded_at', 'id']

    def __str__(self):
        return f"{self.application_id} - {self.document_type} ({self.file_name})"


class ApplicationAction(models.Model):
    """Append-only record of one workflow transition"""
    application = models.ForeignKey(HomestayApplication, on_delete=models.CASCADE, related_name='actions')
    actor = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='application_actions')
    action = models.CharField(max_length=60)
    previous_status = models.CharField(max_length=40, null=True, blank=True)
    new_status = models.CharField(max_length=40, null=True, blank=True)
    feedback = models.TextField(null=True, blank=True)
    issues_found = models.JSONField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'application_actions'
        ordering = ['created_at', 'id']
        indexes = [
            models.Index(fields=['application', 'created_at'], name='app_action_timeline_idx'),
            models.Index(fields=['action'], name='app_action_action_idx'),
        ]

    def __str__(self):
        return f"{self.application_id} - {self.action}: {self.previous_status} -> {self.new_status}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValueError("Application actions are append-only and cannot be modified")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValueError("Application actions are append-only and cannot be deleted")


# ============================================================================
# INSPECTIONS
# ============================================================================

class InspectionOrder(models.Model):
    """Site inspection assigned by the DTDO to a Dealing Assistant"""
    STATUS_CHOICES = [
        ('scheduled', 'Scheduled'),
        ('in_progress', 'In Progress'),
        ('completed', 'Completed'),
        ('cancelled', 'Cancelled'),
    ]

    application = models.ForeignKey(HomestayApplication, on_delete=models.CASCADE, related_name='inspection_orders')
    scheduled_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, related_name='scheduled_inspections')
    scheduled_date = models.DateTimeField()
    assigned_to = models.ForeignKey(User, on_delete=models.PROTECT, related_name='assigned_inspections')
    assigned_date = models.DateTimeField()
    inspection_date = models.DateTimeField()
    inspection_address = models.TextField(blank=True)
    special_instructions = models.TextField(blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='scheduled')
    dtdo_notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'inspection_orders'
        ordering = ['-created_at']

    def __str__(self):
        return f"Inspection {self.pk} - {self.application} on {self.inspection_date:%d %b %Y}"


class InspectionReport(models.Model):
    """Checklist results filed by the Dealing Assistant after the site visit"""
    RECOMMENDATION_CHOICES = [
        ('approve', 'Approve'),
        ('raise_objections', 'Raise Objections'),
        ('reject', 'Reject'),
    ]

    inspection_order = models.OneToOneField(InspectionOrder, on_delete=models.CASCADE, related_name='report')
    application = models.ForeignKey(HomestayApplication, on_delete=models.CASCADE, related_name='inspection_reports')
    submitted_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, related_name='inspection_reports')
    submitted_date = models.DateTimeField()
    actual_inspection_date = models.DateField()

    room_count_verified = models.BooleanField(default=False)
    actual_room_count = models.PositiveIntegerField(null=True, blank=True)
    category_meets_standards = models.BooleanField(default=False)
    recommended_category = models.CharField(max_length=20, blank=True)

    mandatory_checklist = models.JSONField(null=True, blank=True)
    mandatory_remarks = models.TextField(blank=True)
    desirable_checklist = models.JSONField(null=True, blank=True)
    desirable_remarks = models.TextField(blank=True)

    fire_safety_compliant = models.BooleanField(default=False)
    structural_safety = models.BooleanField(default=False)
    overall_satisfactory = models.BooleanField(default=False)
    recommendation = models.CharField(max_length=20, choices=RECOMMENDATION_CHOICES, default='approve')
    detailed_findings = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'inspection_reports'

    def __str__(self):
        return f"Report for {self.application} ({self.get_recommendation_display()})"


# ============================================================================
# PAYMENTS
# ============================================================================

class Payment(models.Model):
    """Registration fee payment"""
    PAYMENT_STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('pending_verification', 'Pending Verification'),
        ('success', 'Success'),
        ('failed', 'Failed'),
    ]

    GATEWAY_CHOICES = [
        ('himkosh', 'HimKosh'),
        ('manual', 'Manual'),
    ]

    application = models.ForeignKey(HomestayApplication, on_delete=models.CASCADE, related_name='payments')
    payment_type = models.CharField(max_length=30, default='registration')
    amount = models.DecimalField(max_digits=10, decimal_places=2)
    payment_gateway = models.CharField(max_length=20, choices=GATEWAY_CHOICES, default='himkosh')
    gateway_transaction_id = models.CharField(max_length=100, blank=True)
    payment_status = models.CharField(max_length=30, choices=PAYMENT_STATUS_CHOICES, default='pending')
    initiated_at = models.DateTimeField(auto_now_add=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    receipt_number = models.CharField(max_length=50, blank=True)
    confirmed_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='confirmed_payments')

    class Meta:
        db_table = 'payments'
        ordering = ['-initiated_at']

    def __str__(self):
        return f"{self.application} - INR {self.amount} ({self.payment_status})"


# ============================================================================
# NOTIFICATION SYSTEM
# ============================================================================

class Notification(models.Model):
    """Outbound SMS/email attempts and in-app messages"""
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('sent', 'Sent'),
        ('failed', 'Failed'),
    ]

    NOTIFICATION_TYPE_CHOICES = [
        ('sms', 'SMS'),
        ('email', 'Email'),
        ('system', 'System'),
    ]

    recipient = models.ForeignKey(User, on_delete=models.CASCADE, related_name='notifications')
    application = models.ForeignKey(
        HomestayApplication, on_delete=models.SET_NULL, null=True, blank=True, related_name='notifications'
    )
    notification_type = models.CharField(max_length=20, choices=NOTIFICATION_TYPE_CHOICES)
    event = models.CharField(max_length=60, blank=True)

    subject = models.CharField(max_length=200)
    message = models.TextField()

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending')
    error_message = models.TextField(blank=True)

    sent_at = models.DateTimeField(null=True, blank=True)
    read_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'notifications'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['recipient', 'read_at'], name='notification_unread_idx'),
        ]

    def __str__(self):
        return f"{self.recipient.username} - {self.subject}"


# ============================================================================
# SYSTEM CONFIGURATION
# ============================================================================

class SystemConfiguration(models.Model):
    """Admin-editable runtime settings"""
    DATA_TYPE_CHOICES = [
        ('string', 'String'),
        ('integer', 'Integer'),
        ('boolean', 'Boolean'),
        ('json', 'JSON'),
    ]

    key = models.CharField(max_length=100, unique=True)
    value = models.TextField()
    description = models.TextField(blank=True)
    data_type = models.CharField(max_length=20, choices=DATA_TYPE_CHOICES, default='string')
    is_editable = models.BooleanField(default=True)
    updated_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'system_configuration'

    def __str__(self):
        return self.key

    def get_value(self):
        """Return the stored value converted according to data_type"""
        if self.data_type == 'json':
            return json.loads(self.value) if self.value else None
        if self.data_type == 'integer':
            return int(self.value)
        if self.data_type == 'boolean':
            return self.value.strip().lower() in ('1', 'true', 'yes', 'on')
        return self.value

    @classmethod
    def get_setting(cls, key, default=None):
        config = cls.objects.filter(key=key).first()
        if config is None:
            return default
        return config.get_value()

    @classmethod
    def set_json(cls, key, value, description='', updated_by=None):
        config, _ = cls.objects.update_or_create(
            key=key,
            defaults={
                'value': json.dumps(value),
                'data_type': 'json',
                'description': description,
                'updated_by': updated_by,
            },
        )
        return config
