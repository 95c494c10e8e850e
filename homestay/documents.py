"""
HP Homestay Portal - Document Upload Policy
Size, type and completeness checks applied to an application's document set
"""

import copy
import logging
import math

from .models import SystemConfiguration


logger = logging.getLogger(__name__)

UPLOAD_POLICY_SETTING_KEY = 'upload_policy'

BYTES_PER_MB = 1024 * 1024

DOCUMENT_TYPE_LABELS = {
    'revenue_papers': 'Revenue Papers (Jamabandi & Tatima)',
    'undertaking_form_c': 'Affidavit / Undertaking (Form C)',
    'commercial_electricity_bill': 'Commercial Electricity Bill',
    'commercial_water_bill': 'Commercial Water Bill',
    'property_photo': 'Property Photographs',
    'legacy_certificate': 'Existing Registration Certificate',
    'owner_identity_proof': 'Owner Identity Proof',
}

REGISTRATION_DOCUMENT_TYPES = [
    'revenue_papers', 'undertaking_form_c', 'commercial_electricity_bill', 'commercial_water_bill', 'property_photo',
]
EXISTING_RC_DOCUMENT_TYPES = ['legacy_certificate', 'owner_identity_proof']

DEFAULT_UPLOAD_POLICY = {
    'documents': {
        'allowedMimeTypes': ['application/pdf'],
        'allowedExtensions': ['.pdf'],
        'maxFileSizeMB': 2,
    },
    'photos': {
        'allowedMimeTypes': ['image/jpeg', 'image/png', 'image/jpg'],
        'allowedExtensions': ['.jpg', '.jpeg', '.png'],
        'maxFileSizeMB': 2,
    },
    'totalPerApplicationMB': 20,
    'requiredDocumentTypes': list(REGISTRATION_DOCUMENT_TYPES),
    'maxFilesPerType': {'property_photo': 10, 'default': 2},
    'minFilesPerType': {'property_photo': 2},
}

OCTET_STREAM_TYPES = ('application/octet-stream', 'binary/octet-stream')


# ============================================================================
# POLICY
# ============================================================================

def _positive_number(value, fallback):
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return fallback
    if not math.isfinite(value) or value <= 0:
        return fallback
    return value


def _lower_list(value, fallback):
    if not isinstance(value, list):
        return list(fallback)
    return [str(item).strip().lower() for item in value if str(item).strip()]


def _count_map(value, fallback):
    if not isinstance(value, dict):
        return dict(fallback)
    counts = {}
    for key, count in value.items():
        if isinstance(count, int) and not isinstance(count, bool) and count >= 0:
            counts[str(key)] = count
    return counts


def normalize_upload_policy(value):
    """Coerce stored JSON into a complete policy, falling back field by field"""
    policy = copy.deepcopy(DEFAULT_UPLOAD_POLICY)
    if not isinstance(value, dict):
        return policy

    for category in ('documents', 'photos'):
        stored = value.get(category)
        if not isinstance(stored, dict):
            continue
        defaults = DEFAULT_UPLOAD_POLICY[category]
        policy[category] = {
            'allowedMimeTypes': _lower_list(stored.get('allowedMimeTypes'), defaults['allowedMimeTypes']),
            'allowedExtensions': _lower_list(stored.get('allowedExtensions'), defaults['allowedExtensions']),
            'maxFileSizeMB': _positive_number(stored.get('maxFileSizeMB'), defaults['maxFileSizeMB']),
        }

    policy['totalPerApplicationMB'] = _positive_number(
        value.get('totalPerApplicationMB'), DEFAULT_UPLOAD_POLICY['totalPerApplicationMB']
    )
    if isinstance(value.get('requiredDocumentTypes'), list):
        policy['requiredDocumentTypes'] = [
            str(item).strip() for item in value['requiredDocumentTypes'] if str(item).strip()
        ]
    if 'maxFilesPerType' in value:
        policy['maxFilesPerType'] = _count_map(value['maxFilesPerType'], DEFAULT_UPLOAD_POLICY['maxFilesPerType'])
    if 'minFilesPerType' in value:
        policy['minFilesPerType'] = _count_map(value['minFilesPerType'], DEFAULT_UPLOAD_POLICY['minFilesPerType'])
    return policy


def get_upload_policy():
    try:
        stored = SystemConfiguration.get_setting(UPLOAD_POLICY_SETTING_KEY)
    except ValueError as e:
        logger.error(f"Invalid upload policy setting, using defaults: {str(e)}")
        stored = None
    return normalize_upload_policy(stored)


def policy_for_kind(policy, application_kind):
    """Existing certificate holders only file the certificate and an identity proof"""
    if application_kind != 'existing_rc_onboarding':
        return policy
    policy = copy.deepcopy(policy)
    policy['requiredDocumentTypes'] = list(EXISTING_RC_DOCUMENT_TYPES)
    policy['minFilesPerType'] = {}
    return policy


# ============================================================================
# VALIDATION
# ============================================================================

def _get(doc, key):
    if isinstance(doc, dict):
        return doc.get(key)
    return getattr(doc, key, None)


def normalize_mime(mime):
    if not mime or not isinstance(mime, str):
        return ''
    return mime.split(';')[0].strip().lower()


def get_extension(value):
    if not value or not isinstance(value, str):
        return ''
    dot = value.rfind('.')
    if dot == -1 or dot == len(value) - 1:
        return ''
    return value[dot:].lower()


def format_bytes(size):
    if not isinstance(size, (int, float)) or size <= 0:
        return '0 B'
    units = ['B', 'KB', 'MB', 'GB']
    index = min(int(math.floor(math.log(size, 1024))), len(units) - 1)
    value = size / (1024 ** index)
    text = str(int(value)) if value == int(value) else f"{value:.1f}"
    return f"{text} {units[index]}"


def resolve_document_category(doc):
    document_type = (_get(doc, 'document_type') or '').lower()
    if 'photo' in document_type or 'image' in document_type:
        return 'photos'
    if normalize_mime(_get(doc, 'mime_type')).startswith('image/'):
        return 'photos'
    return 'documents'


def _mime_allowed(mime, allowed):
    if not allowed or not mime or mime in OCTET_STREAM_TYPES:
        return True
    if mime in allowed:
        return True
    return mime == 'image/jpg' and 'image/jpeg' in allowed


def _check_file(doc, policy):
    category_policy = policy[resolve_document_category(doc)]
    file_name = _get(doc, 'file_name') or 'Document'

    size = _get(doc, 'file_size') or 0
    if size > category_policy['maxFileSizeMB'] * BYTES_PER_MB:
        return f"{file_name} exceeds the {category_policy['maxFileSizeMB']} MB limit"

    mime = normalize_mime(_get(doc, 'mime_type'))
    if not _mime_allowed(mime, category_policy['allowedMimeTypes']):
        return (
            f"{file_name} has an unsupported file type ({mime}). "
            f"Allowed types: {', '.join(category_policy['allowedMimeTypes'])}"
        )

    extension = get_extension(_get(doc, 'file_name')) or get_extension(_get(doc, 'file_path'))
    allowed_extensions = category_policy['allowedExtensions']
    if allowed_extensions and extension not in allowed_extensions:
        return f"{file_name} must use one of the following extensions: {', '.join(allowed_extensions)}"
    return None


def _check_counts(docs, policy, require_complete):
    counts = {}
    for doc in docs:
        document_type = _get(doc, 'document_type') or ''
        counts[document_type] = counts.get(document_type, 0) + 1

    max_files = policy.get('maxFilesPerType', {})
    default_max = max_files.get('default')
    for document_type, count in counts.items():
        limit = max_files.get(document_type, default_max)
        if limit is not None and count > limit:
            label = DOCUMENT_TYPE_LABELS.get(document_type, document_type)
            return f"At most {limit} file(s) can be uploaded for {label}"

    if not require_complete:
        return None

    for document_type in policy.get('requiredDocumentTypes', []):
        if not counts.get(document_type):
            label = DOCUMENT_TYPE_LABELS.get(document_type, document_type)
            return f"{label} is required before submission"

    for document_type, minimum in policy.get('minFilesPerType', {}).items():
        if counts.get(document_type, 0) < minimum:
            label = DOCUMENT_TYPE_LABELS.get(document_type, document_type)
            return f"Upload at least {minimum} file(s) for {label}"
    return None


def validate_documents(docs, policy=None, require_complete=False):
    """
    Check a document set against the upload policy. Returns the first problem
    found as a user-facing message, or None when the set is acceptable.
    Required types and minimum counts are only enforced with require_complete.
    """
    policy = policy or get_upload_policy()
    docs = list(docs or [])

    total_bytes = 0
    for doc in docs:
        error = _check_file(doc, policy)
        if error:
            return error
        total_bytes += _get(doc, 'file_size') or 0

    if total_bytes > policy['totalPerApplicationMB'] * BYTES_PER_MB:
        return (
            f"Total document size {format_bytes(total_bytes)} exceeds "
            f"{policy['totalPerApplicationMB']} MB limit per application"
        )

    return _check_counts(docs, policy, require_complete)
