"""Initial schema for homestay registration."""

from django.conf import settings
import django.contrib.auth.models
import django.contrib.auth.validators
import django.core.validators
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone


ROLE_CHOICES = [
    ("property_owner", "Property Owner"),
    ("dealing_assistant", "Dealing Assistant"),
    ("district_tourism_officer", "District Tourism Development Officer"),
    ("district_officer", "District Officer"),
    ("state_officer", "State Officer"),
    ("admin", "Admin"),
    ("super_admin", "Super Admin"),
]

STATUS_CHOICES = [
    ("draft", "Draft"),
    ("submitted", "Submitted"),
    ("under_scrutiny", "Under Scrutiny"),
    ("forwarded_to_dtdo", "Forwarded to DTDO"),
    ("dtdo_review", "DTDO Review"),
    ("inspection_scheduled", "Inspection Scheduled"),
    ("inspection_under_review", "Inspection Under Review"),
    ("reverted_to_applicant", "Reverted to Applicant"),
    ("sent_back_for_corrections", "Sent Back for Corrections"),
    ("verified_for_payment", "Verified for Payment"),
    ("payment_pending", "Payment Pending"),
    ("approved", "Approved"),
    ("rejected", "Rejected"),
]


def money(**kwargs):
    return models.DecimalField(decimal_places=2, max_digits=10, **kwargs)


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("auth", "0012_alter_user_first_name_max_length"),
    ]

    operations = [
        migrations.CreateModel(
            name="User",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("password", models.CharField(max_length=128, verbose_name="password")),
                ("last_login", models.DateTimeField(blank=True, null=True, verbose_name="last login")),
                (
                    "is_superuser",
                    models.BooleanField(
                        default=False,
                        help_text="Designates that this user has all permissions without explicitly assigning them.",
                        verbose_name="superuser status",
                    ),
                ),
                (
                    "username",
                    models.CharField(
                        error_messages={"unique": "A user with that username already exists."},
                        help_text="Required. 150 characters or fewer. Letters, digits and @/./+/-/_ only.",
                        max_length=150,
                        unique=True,
                        validators=[django.contrib.auth.validators.UnicodeUsernameValidator()],
                        verbose_name="username",
                    ),
                ),
                ("first_name", models.CharField(blank=True, max_length=150, verbose_name="first name")),
                ("last_name", models.CharField(blank=True, max_length=150, verbose_name="last name")),
                ("email", models.EmailField(blank=True, max_length=254, verbose_name="email address")),
                (
                    "is_staff",
                    models.BooleanField(
                        default=False,
                        help_text="Designates whether the user can log into this admin site.",
                        verbose_name="staff status",
                    ),
                ),
                (
                    "is_active",
                    models.BooleanField(
                        default=True,
                        help_text=(
                            "Designates whether this user should be treated as active. "
                            "Unselect this instead of deleting accounts."
                        ),
                        verbose_name="active",
                    ),
                ),
                ("date_joined", models.DateTimeField(default=django.utils.timezone.now, verbose_name="date joined")),
                ("role", models.CharField(choices=ROLE_CHOICES, default="property_owner", max_length=40)),
                ("full_name", models.CharField(blank=True, max_length=200)),
                ("mobile", models.CharField(blank=True, max_length=15, null=True, unique=True)),
                ("district", models.CharField(blank=True, max_length=100)),
                ("designation", models.CharField(blank=True, max_length=150)),
                ("aadhaar_number", models.CharField(blank=True, max_length=12, null=True, unique=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "groups",
                    models.ManyToManyField(
                        blank=True,
                        help_text=(
                            "The groups this user belongs to. A user will get all permissions "
                            "granted to each of their groups."
                        ),
                        related_name="user_set",
                        related_query_name="user",
                        to="auth.group",
                        verbose_name="groups",
                    ),
                ),
                (
                    "user_permissions",
                    models.ManyToManyField(
                        blank=True,
                        help_text="Specific permissions for this user.",
                        related_name="user_set",
                        related_query_name="user",
                        to="auth.permission",
                        verbose_name="user permissions",
                    ),
                ),
            ],
            options={
                "db_table": "users",
            },
            managers=[
                ("objects", django.contrib.auth.models.UserManager()),
            ],
        ),
        migrations.CreateModel(
            name="HomestayApplication",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("application_number", models.CharField(blank=True, max_length=50, null=True, unique=True)),
                (
                    "application_kind",
                    models.CharField(
                        choices=[
                            ("new_registration", "New Registration"),
                            ("add_rooms", "Add Rooms"),
                            ("delete_rooms", "Delete Rooms"),
                            ("cancel_certificate", "Cancel Certificate"),
                            ("change_category", "Change Category"),
                            ("renewal", "Renewal"),
                            ("existing_rc_onboarding", "Existing RC Onboarding"),
                        ],
                        default="new_registration",
                        max_length=40,
                    ),
                ),
                (
                    "category",
                    models.CharField(
                        choices=[("diamond", "Diamond"), ("gold", "Gold"), ("silver", "Silver")],
                        default="silver",
                        max_length=20,
                    ),
                ),
                (
                    "location_type",
                    models.CharField(
                        choices=[
                            ("mc", "Municipal Corporation"),
                            ("tcp", "TCP/SDA/Nagar Panchayat"),
                            ("gp", "Gram Panchayat"),
                        ],
                        default="gp",
                        max_length=10,
                    ),
                ),
                ("project_type", models.CharField(blank=True, max_length=50)),
                ("owner_name", models.CharField(blank=True, max_length=200)),
                ("owner_mobile", models.CharField(blank=True, max_length=15)),
                ("owner_email", models.EmailField(blank=True, max_length=254)),
                ("owner_aadhaar", models.CharField(blank=True, max_length=12)),
                (
                    "owner_gender",
                    models.CharField(
                        blank=True,
                        choices=[("male", "Male"), ("female", "Female"), ("other", "Other")],
                        max_length=10,
                    ),
                ),
                ("guardian_name", models.CharField(blank=True, max_length=200)),
                ("property_name", models.CharField(blank=True, max_length=200)),
                ("address", models.TextField(blank=True)),
                ("district", models.CharField(blank=True, max_length=100)),
                ("tehsil", models.CharField(blank=True, max_length=100)),
                ("block", models.CharField(blank=True, max_length=100)),
                ("pincode", models.CharField(blank=True, max_length=10)),
                ("single_bed_rooms", models.PositiveIntegerField(default=0)),
                ("single_bed_beds", models.PositiveIntegerField(default=1)),
                ("single_bed_room_rate", money(blank=True, null=True)),
                ("double_bed_rooms", models.PositiveIntegerField(default=0)),
                ("double_bed_beds", models.PositiveIntegerField(default=2)),
                ("double_bed_room_rate", money(blank=True, null=True)),
                ("family_suites", models.PositiveIntegerField(default=0)),
                ("family_suite_beds", models.PositiveIntegerField(default=4)),
                ("family_suite_rate", money(blank=True, null=True)),
                ("total_rooms", models.PositiveIntegerField(default=0)),
                ("attached_washrooms", models.PositiveIntegerField(default=0)),
                ("distance_airport", models.DecimalField(blank=True, decimal_places=2, max_digits=8, null=True)),
                ("distance_railway", models.DecimalField(blank=True, decimal_places=2, max_digits=8, null=True)),
                ("distance_city_center", models.DecimalField(blank=True, decimal_places=2, max_digits=8, null=True)),
                ("distance_shopping", models.DecimalField(blank=True, decimal_places=2, max_digits=8, null=True)),
                ("distance_bus_stand", models.DecimalField(blank=True, decimal_places=2, max_digits=8, null=True)),
                ("amenities", models.JSONField(blank=True, default=dict)),
                (
                    "certificate_validity_years",
                    models.PositiveSmallIntegerField(
                        default=1,
                        validators=[
                            django.core.validators.MinValueValidator(1),
                            django.core.validators.MaxValueValidator(3),
                        ],
                    ),
                ),
                ("is_pangi_sub_division", models.BooleanField(default=False)),
                ("status", models.CharField(choices=STATUS_CHOICES, default="draft", max_length=40)),
                ("current_stage", models.CharField(default="draft", max_length=40)),
                ("submitted_at", models.DateTimeField(blank=True, null=True)),
                ("approved_at", models.DateTimeField(blank=True, null=True)),
                ("rejection_reason", models.TextField(blank=True)),
                ("clarification_requested", models.TextField(blank=True)),
                ("correction_submission_count", models.PositiveIntegerField(default=0)),
                ("da_review_date", models.DateTimeField(blank=True, null=True)),
                ("da_forwarded_date", models.DateTimeField(blank=True, null=True)),
                ("da_remarks", models.TextField(blank=True)),
                ("dtdo_review_date", models.DateTimeField(blank=True, null=True)),
                ("dtdo_remarks", models.TextField(blank=True)),
                ("district_review_date", models.DateTimeField(blank=True, null=True)),
                ("district_notes", models.TextField(blank=True)),
                ("state_review_date", models.DateTimeField(blank=True, null=True)),
                ("state_notes", models.TextField(blank=True)),
                ("site_inspection_scheduled_date", models.DateTimeField(blank=True, null=True)),
                ("site_inspection_completed_date", models.DateTimeField(blank=True, null=True)),
                (
                    "site_inspection_outcome",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("approved", "Approved"),
                            ("corrections_needed", "Corrections Needed"),
                            ("rejected", "Rejected"),
                            ("recommended", "Recommended"),
                            ("objection", "Objection"),
                            ("completed", "Completed"),
                        ],
                        max_length=30,
                    ),
                ),
                ("site_inspection_notes", models.TextField(blank=True)),
                ("site_inspection_findings", models.JSONField(blank=True, null=True)),
                ("certificate_number", models.CharField(blank=True, max_length=50, null=True, unique=True)),
                ("certificate_issued_date", models.DateField(blank=True, null=True)),
                ("certificate_expiry_date", models.DateField(blank=True, null=True)),
                ("base_fee", money(blank=True, null=True)),
                ("total_before_discounts", money(blank=True, null=True)),
                ("validity_discount", money(default=0)),
                ("female_owner_discount", money(default=0)),
                ("pangi_discount", money(default=0)),
                ("total_discount", money(default=0)),
                ("total_fee", money(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "owner",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="applications",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "da",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="da_applications",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "dtdo",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="dtdo_applications",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "district_officer",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="district_reviewed_applications",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "state_officer",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="state_reviewed_applications",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "site_inspection_officer",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="inspected_applications",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "homestay_applications",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["status"], name="homestay_app_status_idx"),
                    models.Index(fields=["district"], name="homestay_app_district_idx"),
                    models.Index(fields=["owner_mobile"], name="homestay_app_mobile_idx"),
                    models.Index(fields=["created_at"], name="homestay_app_created_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="ApplicationDocument",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("document_type", models.CharField(max_length=100)),
                ("file_name", models.CharField(max_length=255)),
                ("file_path", models.CharField(max_length=500)),
                ("file_size", models.PositiveIntegerField(default=0)),
                ("mime_type", models.CharField(blank=True, max_length=100)),
                ("uploaded_at", models.DateTimeField(auto_now_add=True)),
                (
                    "verification_status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("verified", "Verified"),
                            ("needs_correction", "Needs Correction"),
                            ("rejected", "Rejected"),
                        ],
                        default="pending",
                        max_length=20,
                    ),
                ),
                ("verification_notes", models.TextField(blank=True)),
                ("verification_date", models.DateTimeField(blank=True, null=True)),
                (
                    "application",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="documents",
                        to="homestay.homestayapplication",
                    ),
                ),
                (
                    "verified_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="verified_documents",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "application_documents",
                "ordering": ["uploaded_at", "id"],
            },
        ),
        migrations.CreateModel(
            name="ApplicationAction",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("action", models.CharField(max_length=60)),
                ("previous_status", models.CharField(blank=True, max_length=40, null=True)),
                ("new_status", models.CharField(blank=True, max_length=40, null=True)),
                ("feedback", models.TextField(blank=True, null=True)),
                ("issues_found", models.JSONField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "actor",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="application_actions",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "application",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="actions",
                        to="homestay.homestayapplication",
                    ),
                ),
            ],
            options={
                "db_table": "application_actions",
                "ordering": ["created_at", "id"],
                "indexes": [
                    models.Index(fields=["application", "created_at"], name="app_action_timeline_idx"),
                    models.Index(fields=["action"], name="app_action_action_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="InspectionOrder",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("scheduled_date", models.DateTimeField()),
                ("assigned_date", models.DateTimeField()),
                ("inspection_date", models.DateTimeField()),
                ("inspection_address", models.TextField(blank=True)),
                ("special_instructions", models.TextField(blank=True)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("scheduled", "Scheduled"),
                            ("in_progress", "In Progress"),
                            ("completed", "Completed"),
                            ("cancelled", "Cancelled"),
                        ],
                        default="scheduled",
                        max_length=20,
                    ),
                ),
                ("dtdo_notes", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "application",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="inspection_orders",
                        to="homestay.homestayapplication",
                    ),
                ),
                (
                    "assigned_to",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="assigned_inspections",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "scheduled_by",
                    models.ForeignKey(
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="scheduled_inspections",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "inspection_orders",
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="InspectionReport",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("submitted_date", models.DateTimeField()),
                ("actual_inspection_date", models.DateField()),
                ("room_count_verified", models.BooleanField(default=False)),
                ("actual_room_count", models.PositiveIntegerField(blank=True, null=True)),
                ("category_meets_standards", models.BooleanField(default=False)),
                ("recommended_category", models.CharField(blank=True, max_length=20)),
                ("mandatory_checklist", models.JSONField(blank=True, null=True)),
                ("mandatory_remarks", models.TextField(blank=True)),
                ("desirable_checklist", models.JSONField(blank=True, null=True)),
                ("desirable_remarks", models.TextField(blank=True)),
                ("fire_safety_compliant", models.BooleanField(default=False)),
                ("structural_safety", models.BooleanField(default=False)),
                ("overall_satisfactory", models.BooleanField(default=False)),
                (
                    "recommendation",
                    models.CharField(
                        choices=[
                            ("approve", "Approve"),
                            ("raise_objections", "Raise Objections"),
                            ("reject", "Reject"),
                        ],
                        default="approve",
                        max_length=20,
                    ),
                ),
                ("detailed_findings", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "application",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="inspection_reports",
                        to="homestay.homestayapplication",
                    ),
                ),
                (
                    "inspection_order",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="report",
                        to="homestay.inspectionorder",
                    ),
                ),
                (
                    "submitted_by",
                    models.ForeignKey(
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="inspection_reports",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "inspection_reports",
            },
        ),
        migrations.CreateModel(
            name="Payment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("payment_type", models.CharField(default="registration", max_length=30)),
                ("amount", money()),
                (
                    "payment_gateway",
                    models.CharField(
                        choices=[("himkosh", "HimKosh"), ("manual", "Manual")],
                        default="himkosh",
                        max_length=20,
                    ),
                ),
                ("gateway_transaction_id", models.CharField(blank=True, max_length=100)),
                (
                    "payment_status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("pending_verification", "Pending Verification"),
                            ("success", "Success"),
                            ("failed", "Failed"),
                        ],
                        default="pending",
                        max_length=30,
                    ),
                ),
                ("initiated_at", models.DateTimeField(auto_now_add=True)),
                ("completed_at", models.DateTimeField(blank=True, null=True)),
                ("receipt_number", models.CharField(blank=True, max_length=50)),
                (
                    "application",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="payments",
                        to="homestay.homestayapplication",
                    ),
                ),
                (
                    "confirmed_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="confirmed_payments",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "payments",
                "ordering": ["-initiated_at"],
            },
        ),
        migrations.CreateModel(
            name="Notification",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "notification_type",
                    models.CharField(
                        choices=[("sms", "SMS"), ("email", "Email"), ("system", "System")],
                        max_length=20,
                    ),
                ),
                ("event", models.CharField(blank=True, max_length=60)),
                ("subject", models.CharField(max_length=200)),
                ("message", models.TextField()),
                (
                    "status",
                    models.CharField(
                        choices=[("pending", "Pending"), ("sent", "Sent"), ("failed", "Failed")],
                        default="pending",
                        max_length=20,
                    ),
                ),
                ("error_message", models.TextField(blank=True)),
                ("sent_at", models.DateTimeField(blank=True, null=True)),
                ("read_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "application",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="notifications",
                        to="homestay.homestayapplication",
                    ),
                ),
                (
                    "recipient",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="notifications",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "notifications",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["recipient", "read_at"], name="notification_unread_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="SystemConfiguration",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("key", models.CharField(max_length=100, unique=True)),
                ("value", models.TextField()),
                ("description", models.TextField(blank=True)),
                (
                    "data_type",
                    models.CharField(
                        choices=[
                            ("string", "String"),
                            ("integer", "Integer"),
                            ("boolean", "Boolean"),
                            ("json", "JSON"),
                        ],
                        default="string",
                        max_length=20,
                    ),
                ),
                ("is_editable", models.BooleanField(default=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "updated_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "system_configuration",
            },
        ),
    ]
