"""
Tests for the document upload policy
"""

import copy

import pytest

from homestay.documents import (
    DEFAULT_UPLOAD_POLICY, normalize_upload_policy, validate_documents, format_bytes, get_extension,
    normalize_mime, resolve_document_category, policy_for_kind,
)


def doc(document_type, file_name, mime_type='application/pdf', file_size=100_000):
    return {
        'document_type': document_type,
        'file_name': file_name,
        'file_path': f'uploads/{file_name}',
        'mime_type': mime_type,
        'file_size': file_size,
    }


@pytest.fixture
def policy():
    return copy.deepcopy(DEFAULT_UPLOAD_POLICY)


@pytest.fixture
def complete_set():
    return [
        doc('revenue_papers', 'jamabandi.pdf'),
        doc('undertaking_form_c', 'form_c.pdf'),
        doc('commercial_electricity_bill', 'electricity.pdf'),
        doc('commercial_water_bill', 'water.pdf'),
        doc('property_photo', 'front.jpg', 'image/jpeg'),
        doc('property_photo', 'room.png', 'image/png'),
    ]


class TestValidateDocuments:

    def test_complete_set(self, policy, complete_set):
        assert validate_documents(complete_set, policy, require_complete=True) is None

    def test_partial_set_is_fine_while_drafting(self, policy):
        assert validate_documents([doc('revenue_papers', 'jamabandi.pdf')], policy) is None

    def test_missing_required_type(self, policy, complete_set):
        docs = [d for d in complete_set if d['document_type'] != 'commercial_water_bill']
        assert validate_documents(docs, policy, require_complete=True) == (
            'Commercial Water Bill is required before submission'
        )

    def test_minimum_photos(self, policy, complete_set):
        assert validate_documents(complete_set[:-1], policy, require_complete=True) == (
            'Upload at least 2 file(s) for Property Photographs'
        )

    def test_file_too_large(self, policy):
        error = validate_documents([doc('revenue_papers', 'big.pdf', file_size=3 * 1024 * 1024)], policy)
        assert error == 'big.pdf exceeds the 2 MB limit'

    def test_unsupported_mime(self, policy):
        error = validate_documents([doc('revenue_papers', 'papers.doc', 'application/msword')], policy)
        assert error.startswith('papers.doc has an unsupported file type (application/msword)')

    def test_wrong_extension(self, policy):
        error = validate_documents([doc('revenue_papers', 'papers.docx')], policy)
        assert error == 'papers.docx must use one of the following extensions: .pdf'

    def test_octet_stream_is_accepted(self, policy):
        assert validate_documents([doc('revenue_papers', 'papers.pdf', 'application/octet-stream')], policy) is None

    def test_per_type_maximum(self, policy):
        docs = [doc('revenue_papers', f'papers_{n}.pdf') for n in range(3)]
        assert validate_documents(docs, policy) == (
            'At most 2 file(s) can be uploaded for Revenue Papers (Jamabandi & Tatima)'
        )

    def test_total_size(self):
        policy = normalize_upload_policy({'totalPerApplicationMB': 1})
        docs = [doc('revenue_papers', 'a.pdf', file_size=600_000), doc('undertaking_form_c', 'b.pdf', file_size=600_000)]
        assert validate_documents(docs, policy).startswith('Total document size 1.1 MB exceeds 1 MB limit')

    def test_model_instances_are_accepted(self, policy):
        from homestay.models import ApplicationDocument

        document = ApplicationDocument(
            document_type='property_photo', file_name='view.JPG', file_path='uploads/view.JPG',
            mime_type='image/jpg', file_size=50_000,
        )
        assert validate_documents([document], policy) is None


class TestPolicy:

    def test_invalid_values_fall_back(self):
        policy = normalize_upload_policy({
            'documents': {'maxFileSizeMB': -5, 'allowedMimeTypes': 'pdf'},
            'totalPerApplicationMB': 'lots',
        })
        assert policy['documents']['maxFileSizeMB'] == 2
        assert policy['documents']['allowedMimeTypes'] == ['application/pdf']
        assert policy['totalPerApplicationMB'] == 20

    def test_overrides(self):
        policy = normalize_upload_policy({
            'photos': {'maxFileSizeMB': 5, 'allowedMimeTypes': ['IMAGE/WEBP'], 'allowedExtensions': ['.webp']},
            'minFilesPerType': {'property_photo': 4},
        })
        assert policy['photos'] == {
            'allowedMimeTypes': ['image/webp'], 'allowedExtensions': ['.webp'], 'maxFileSizeMB': 5,
        }
        assert policy['minFilesPerType'] == {'property_photo': 4}

    def test_not_a_dict(self):
        assert normalize_upload_policy('nonsense') == DEFAULT_UPLOAD_POLICY

    def test_existing_certificate_holders_file_two_documents(self, policy, complete_set):
        onboarding = policy_for_kind(policy, 'existing_rc_onboarding')
        assert onboarding['requiredDocumentTypes'] == ['legacy_certificate', 'owner_identity_proof']
        assert validate_documents(
            [doc('legacy_certificate', 'rc.pdf'), doc('owner_identity_proof', 'aadhaar.pdf')],
            onboarding, require_complete=True,
        ) is None
        assert validate_documents(complete_set, onboarding, require_complete=True) == (
            'Existing Registration Certificate is required before submission'
        )
        # Other kinds keep the registration set
        assert policy_for_kind(policy, 'renewal') is policy
        assert 'legacy_certificate' not in policy['requiredDocumentTypes']


class TestHelpers:

    def test_format_bytes(self):
        assert format_bytes(0) == '0 B'
        assert format_bytes(512) == '512 B'
        assert format_bytes(1536) == '1.5 KB'
        assert format_bytes(2 * 1024 * 1024) == '2 MB'

    def test_get_extension(self):
        assert get_extension('Photo.JPEG') == '.jpeg'
        assert get_extension('noext') == ''
        assert get_extension('trailing.') == ''

    def test_normalize_mime(self):
        assert normalize_mime('Application/PDF; charset=binary') == 'application/pdf'
        assert normalize_mime(None) == ''

    def test_category(self):
        assert resolve_document_category(doc('property_photo', 'a.pdf')) == 'photos'
        assert resolve_document_category(doc('site_plan', 'plan.png', 'image/png')) == 'photos'
        assert resolve_document_category(doc('revenue_papers', 'a.pdf')) == 'documents'
