# forms.py

import re

from django import forms
from django.forms.models import model_to_dict

from .exceptions import ValidationFailed
from .models import HomestayApplication, ApplicationDocument, InspectionReport, Payment
from .fees import MAX_ROOMS_ALLOWED
from .workflow import INSPECTION_OUTCOMES


def snake_case_keys(payload):
    """JSON bodies use camelCase keys; form fields are snake_case"""
    return {re.sub(r'(?<!^)(?=[A-Z])', '_', key).lower(): value for key, value in payload.items()}


def first_error(form):
    for field, errors in form.errors.items():
        if field == '__all__':
            return errors[0]
        return f"{field}: {errors[0]}"
    return 'Invalid request'


def validate_payload(form_class, payload, **kwargs):
    """Bind and validate a form, returning cleaned_data or raising ValidationFailed"""
    form = form_class(data=snake_case_keys(payload), **kwargs)
    if not form.is_valid():
        raise ValidationFailed(first_error(form))
    return form.cleaned_data


class LoginForm(forms.Form):
    username = forms.CharField(max_length=150)
    password = forms.CharField(max_length=128, strip=False)


class ApplicationDraftForm(forms.ModelForm):
    """Owner-editable application fields; everything is optional while in draft"""

    class Meta:
        model = HomestayApplication
        fields = [
            'category', 'location_type', 'project_type',
            'owner_name', 'owner_mobile', 'owner_email', 'owner_aadhaar', 'owner_gender', 'guardian_name',
            'property_name', 'address', 'district', 'tehsil', 'block', 'pincode',
            'single_bed_rooms', 'single_bed_beds', 'single_bed_room_rate',
            'double_bed_rooms', 'double_bed_beds', 'double_bed_room_rate',
            'family_suites', 'family_suite_beds', 'family_suite_rate',
            'attached_washrooms',
            'distance_airport', 'distance_railway', 'distance_city_center',
            'distance_shopping', 'distance_bus_stand',
            'amenities', 'certificate_validity_years', 'is_pangi_sub_division',
        ]

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        for field in self.fields.values():
            field.required = False

    def clean(self):
        cleaned_data = super().clean()
        # Keep the stored value when a non-nullable column is cleared
        for name, value in list(cleaned_data.items()):
            if value is None and not self._meta.model._meta.get_field(name).null:
                cleaned_data[name] = getattr(self.instance, name)
        return cleaned_data

    def clean_owner_aadhaar(self):
        aadhaar = self.cleaned_data.get('owner_aadhaar') or ''
        if aadhaar and not re.fullmatch(r'\d{12}', aadhaar):
            raise forms.ValidationError('Aadhaar must be 12 digits')
        return aadhaar

    def clean_owner_mobile(self):
        mobile = self.cleaned_data.get('owner_mobile') or ''
        if mobile and not re.fullmatch(r'[6-9]\d{9}', mobile):
            raise forms.ValidationError('Enter a valid 10-digit mobile number')
        return mobile

    def clean_certificate_validity_years(self):
        years = self.cleaned_data.get('certificate_validity_years') or 1
        if years not in (1, 3):
            raise forms.ValidationError('Certificate validity must be 1 or 3 years')
        return years


def bind_draft_form(application, payload):
    """Overlay a partial payload on the application's current values"""
    data = model_to_dict(application, fields=ApplicationDraftForm.Meta.fields)
    data.update(snake_case_keys(payload))
    data = {key: ('' if value is None else value) for key, value in data.items()}
    return ApplicationDraftForm(data=data, instance=application)


class DocumentForm(forms.ModelForm):
    class Meta:
        model = ApplicationDocument
        fields = ['document_type', 'file_name', 'file_path', 'file_size', 'mime_type']


class RemarksForm(forms.Form):
    remarks = forms.CharField(required=False, strip=False)


class ReviewForm(forms.Form):
    action = forms.CharField()
    comments = forms.CharField(required=False, strip=False)


class SendBackForm(forms.Form):
    feedback = forms.CharField(required=False, strip=False)


class DaSendBackForm(forms.Form):
    reason = forms.CharField(required=False, strip=False)


class MoveToInspectionForm(forms.Form):
    scheduled_date = forms.DateTimeField(required=False)
    notes = forms.CharField(required=False)


class CompleteInspectionForm(forms.Form):
    outcome = forms.ChoiceField(choices=[(outcome, outcome) for outcome in INSPECTION_OUTCOMES])
    findings = forms.JSONField(required=False)
    notes = forms.CharField(required=False)


class SearchForm(forms.Form):
    application_number = forms.CharField(required=False)
    owner_mobile = forms.CharField(required=False)
    owner_aadhaar = forms.CharField(required=False)
    status = forms.CharField(required=False)
    from_date = forms.DateField(required=False)
    to_date = forms.DateField(required=False)
    month = forms.IntegerField(required=False, min_value=1, max_value=12)
    year = forms.IntegerField(required=False, min_value=2000, max_value=2100)
    recent_limit = forms.IntegerField(required=False)


class ScrutinyForm(forms.Form):
    verifications = forms.JSONField()

    def clean_verifications(self):
        verifications = self.cleaned_data['verifications']
        if not isinstance(verifications, list):
            raise forms.ValidationError('Verifications must be a list')
        allowed = {value for value, _ in ApplicationDocument.VERIFICATION_STATUS_CHOICES}
        for item in verifications:
            if not isinstance(item, dict) or 'documentId' not in item:
                raise forms.ValidationError('Each verification needs a documentId')
            document_id = item['documentId']
            if isinstance(document_id, bool):
                raise forms.ValidationError('documentId must be an integer')
            try:
                item['documentId'] = int(document_id)
            except (TypeError, ValueError):
                raise forms.ValidationError('documentId must be an integer')
            if item.get('status') not in allowed:
                raise forms.ValidationError(f"Invalid verification status: {item.get('status')}")
        return verifications


class ScheduleInspectionForm(forms.Form):
    application_id = forms.IntegerField()
    inspection_date = forms.DateTimeField()
    assigned_to = forms.IntegerField()
    special_instructions = forms.CharField(required=False)


class InspectionReportForm(forms.ModelForm):
    early_inspection_override = forms.BooleanField(required=False)
    early_inspection_reason = forms.CharField(required=False)

    class Meta:
        model = InspectionReport
        fields = [
            'actual_inspection_date', 'room_count_verified', 'actual_room_count',
            'category_meets_standards', 'recommended_category',
            'mandatory_checklist', 'mandatory_remarks', 'desirable_checklist', 'desirable_remarks',
            'fire_safety_compliant', 'structural_safety', 'overall_satisfactory',
            'recommendation', 'detailed_findings',
        ]

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['recommendation'].required = False


class PaymentForm(forms.ModelForm):
    class Meta:
        model = Payment
        fields = ['payment_gateway', 'gateway_transaction_id']

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['payment_gateway'].required = False


class ConfirmPaymentForm(forms.Form):
    receipt_number = forms.CharField(required=False)
    gateway_transaction_id = forms.CharField(required=False)


# ============================================================================
# SERVICE CENTER & EXISTING OWNERS
# ============================================================================

ROOM_DELTA_KEYS = ('single', 'double', 'family')


class ServiceRequestForm(forms.Form):
    base_application_id = forms.IntegerField()
    service_type = forms.ChoiceField(choices=[
        ('renewal', 'Renewal'),
        ('add_rooms', 'Add Rooms'),
        ('delete_rooms', 'Delete Rooms'),
        ('cancel_certificate', 'Cancel Certificate'),
    ])
    note = forms.CharField(required=False, max_length=1000)
    room_delta = forms.JSONField(required=False)

    def clean_room_delta(self):
        delta = self.cleaned_data.get('room_delta')
        if delta is None:
            return None
        if not isinstance(delta, dict) or set(delta) - set(ROOM_DELTA_KEYS):
            raise forms.ValidationError('Room delta may only carry single, double and family counts')
        for key, count in delta.items():
            if count is None:
                continue
            if isinstance(count, bool) or not isinstance(count, int) or not 0 <= count <= MAX_ROOMS_ALLOWED:
                raise forms.ValidationError(f'{key} must be a whole number between 0 and {MAX_ROOMS_ALLOWED}')
        return delta


def clean_uploaded_files(files):
    if not isinstance(files, list) or not files:
        raise forms.ValidationError('Upload at least one file')
    for item in files:
        if not isinstance(item, dict) or not item.get('fileName') or not item.get('filePath'):
            raise forms.ValidationError('Each file needs a fileName and filePath')
        size = item.get('fileSize')
        if size is not None and (isinstance(size, bool) or not isinstance(size, (int, float)) or size < 0):
            raise forms.ValidationError('fileSize must be a non-negative number')
    return files


class ExistingOwnerForm(forms.Form):
    owner_name = forms.CharField(min_length=3)
    owner_mobile = forms.CharField(min_length=6)
    owner_email = forms.EmailField(required=False)
    property_name = forms.CharField(min_length=3)
    district = forms.CharField(min_length=2)
    tehsil = forms.CharField(min_length=2)
    address = forms.CharField(min_length=5)
    pincode = forms.CharField(min_length=4)
    location_type = forms.ChoiceField(choices=HomestayApplication.LOCATION_TYPE_CHOICES)
    total_rooms = forms.IntegerField(min_value=1, max_value=MAX_ROOMS_ALLOWED)
    guardian_name = forms.CharField(min_length=3)
    rc_number = forms.CharField(min_length=3)
    rc_issue_date = forms.CharField(min_length=4)
    rc_expiry_date = forms.CharField(min_length=4)
    notes = forms.CharField(required=False)
    certificate_documents = forms.JSONField()
    identity_proof_documents = forms.JSONField()

    def clean_certificate_documents(self):
        return clean_uploaded_files(self.cleaned_data.get('certificate_documents'))

    def clean_identity_proof_documents(self):
        return clean_uploaded_files(self.cleaned_data.get('identity_proof_documents'))
