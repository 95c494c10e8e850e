"""
HP Homestay Portal - Django Admin Configuration
"""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from .models import (
    User, HomestayApplication, ApplicationDocument, ApplicationAction, InspectionOrder, InspectionReport,
    Payment, Notification, SystemConfiguration,
)


# ============================================================================
# USERS
# ============================================================================

@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ['username', 'full_name', 'role', 'district', 'mobile', 'is_active', 'is_staff']
    list_filter = ['role', 'district', 'is_active', 'is_staff']
    search_fields = ['username', 'full_name', 'mobile', 'email', 'district']
    ordering = ['-date_joined']

    fieldsets = BaseUserAdmin.fieldsets + (
        ('Portal Information', {
            'fields': ('role', 'full_name', 'mobile', 'district', 'designation', 'aadhaar_number')
        }),
    )


# ============================================================================
# APPLICATIONS
# ============================================================================

class ApplicationDocumentInline(admin.TabularInline):
    model = ApplicationDocument
    extra = 0
    fields = ['document_type', 'file_name', 'file_size', 'mime_type', 'verification_status', 'verified_by']
    readonly_fields = ['uploaded_at']


class ApplicationActionInline(admin.TabularInline):
    model = ApplicationAction
    extra = 0
    can_delete = False
    fields = ['created_at', 'action', 'previous_status', 'new_status', 'actor', 'feedback']
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(HomestayApplication)
class HomestayApplicationAdmin(admin.ModelAdmin):
    list_display = [
        'application_number', 'property_name', 'owner_name', 'district', 'category',
        'status', 'submitted_at', 'total_fee'
    ]
    list_filter = ['status', 'category', 'location_type', 'district', 'application_kind']
    search_fields = [
        'application_number', 'property_name', 'owner_name', 'owner_mobile', 'owner_aadhaar',
        'certificate_number', 'parent_certificate_number',
    ]
    readonly_fields = [
        'application_number', 'status', 'current_stage', 'submitted_at', 'approved_at',
        'certificate_number', 'parent_application', 'service_requested_at', 'created_at', 'updated_at'
    ]
    date_hierarchy = 'created_at'
    inlines = [ApplicationDocumentInline, ApplicationActionInline]

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(ApplicationAction)
class ApplicationActionAdmin(admin.ModelAdmin):
    list_display = ['application', 'action', 'previous_status', 'new_status', 'actor', 'created_at']
    list_filter = ['action', 'new_status', 'created_at']
    search_fields = ['application__application_number', 'actor__username', 'feedback']
    date_hierarchy = 'created_at'

    def get_readonly_fields(self, request, obj=None):
        return [field.name for field in self.model._meta.fields]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(ApplicationDocument)
class ApplicationDocumentAdmin(admin.ModelAdmin):
    list_display = ['application', 'document_type', 'file_name', 'verification_status', 'uploaded_at']
    list_filter = ['document_type', 'verification_status']
    search_fields = ['application__application_number', 'file_name']


# ============================================================================
# INSPECTIONS & PAYMENTS
# ============================================================================

@admin.register(InspectionOrder)
class InspectionOrderAdmin(admin.ModelAdmin):
    list_display = ['application', 'assigned_to', 'inspection_date', 'status', 'scheduled_by']
    list_filter = ['status', 'inspection_date']
    search_fields = ['application__application_number', 'assigned_to__username']


@admin.register(InspectionReport)
class InspectionReportAdmin(admin.ModelAdmin):
    list_display = ['application', 'submitted_by', 'actual_inspection_date', 'recommendation', 'overall_satisfactory']
    list_filter = ['recommendation', 'overall_satisfactory']
    search_fields = ['application__application_number']


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ['application', 'amount', 'payment_gateway', 'payment_status', 'initiated_at', 'completed_at']
    list_filter = ['payment_status', 'payment_gateway']
    search_fields = ['application__application_number', 'gateway_transaction_id', 'receipt_number']
    readonly_fields = ['initiated_at']


# ============================================================================
# NOTIFICATIONS & CONFIGURATION
# ============================================================================

@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ['recipient', 'notification_type', 'event', 'subject', 'status', 'created_at']
    list_filter = ['notification_type', 'status', 'event']
    search_fields = ['recipient__username', 'subject', 'message']


@admin.register(SystemConfiguration)
class SystemConfigurationAdmin(admin.ModelAdmin):
    list_display = ['key', 'data_type', 'is_editable', 'updated_by', 'updated_at']
    list_filter = ['data_type', 'is_editable']
    search_fields = ['key', 'description']
