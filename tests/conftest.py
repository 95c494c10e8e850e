"""
Pytest configuration and fixtures for homestay portal tests
"""

import itertools
from decimal import Decimal

import pytest

from homestay import workflow
from homestay.districts import format_application_number
from homestay.models import HomestayApplication, ApplicationDocument
from homestay.transitions import perform_transition


FULL_DOCUMENT_SET = [
    ('revenue_papers', 'jamabandi.pdf', 'application/pdf', 300_000),
    ('undertaking_form_c', 'form_c.pdf', 'application/pdf', 100_000),
    ('commercial_electricity_bill', 'electricity.pdf', 'application/pdf', 90_000),
    ('commercial_water_bill', 'water.pdf', 'application/pdf', 80_000),
    ('property_photo', 'front.jpg', 'image/jpeg', 700_000),
    ('property_photo', 'room.jpg', 'image/jpeg', 600_000),
]


@pytest.fixture
def make_user(django_user_model):
    """Create a portal user for a role; usernames and mobiles stay unique per test"""
    counter = itertools.count(1)

    def make(role, district='', **kwargs):
        n = next(counter)
        username = kwargs.pop('username', f"{role}.{n}")
        defaults = {
            'full_name': f"{role.replace('_', ' ').title()} {n}",
            'mobile': f"98{n:08d}",
            'email': f"{username}@example.com",
            'district': district,
            'role': role,
        }
        defaults.update(kwargs)
        return django_user_model.objects.create_user(username=username, password='password123', **defaults)

    return make


@pytest.fixture
def owner(make_user):
    return make_user(workflow.PROPERTY_OWNER, district='Shimla', username='owner.shimla')


@pytest.fixture
def other_owner(make_user):
    return make_user(workflow.PROPERTY_OWNER, district='Kullu', username='owner.kullu')


@pytest.fixture
def da(make_user):
    return make_user(workflow.DEALING_ASSISTANT, district='Shimla', username='da.shimla')


@pytest.fixture
def kullu_da(make_user):
    return make_user(workflow.DEALING_ASSISTANT, district='Kullu', username='da.kullu')


@pytest.fixture
def dtdo(make_user):
    return make_user(workflow.DISTRICT_TOURISM_OFFICER, district='Shimla Division', username='dtdo.shimla')


@pytest.fixture
def state_officer(make_user):
    return make_user(workflow.STATE_OFFICER, username='state.officer')


@pytest.fixture
def make_application():
    """Draft application that satisfies the room rules; pass documents=True to attach a full set"""

    def make(owner, documents=True, **fields):
        values = {
            'owner': owner,
            'owner_name': owner.full_name,
            'owner_mobile': owner.mobile,
            'owner_email': owner.email,
            'property_name': 'Pine View Homestay',
            'address': 'Upper Chakkar, Shimla',
            'district': owner.district or 'Shimla',
            'tehsil': 'Shimla (Urban)',
            'category': 'silver',
            'location_type': 'gp',
            'single_bed_rooms': 1,
            'single_bed_room_rate': Decimal('1500'),
            'double_bed_rooms': 2,
            'double_bed_room_rate': Decimal('2500'),
            'attached_washrooms': 3,
        }
        values.update(fields)
        application = HomestayApplication.objects.create(**values)
        if documents:
            attach_documents(application)
        return application

    return make


def attach_documents(application, document_set=FULL_DOCUMENT_SET):
    for document_type, file_name, mime_type, size in document_set:
        ApplicationDocument.objects.create(
            application=application,
            document_type=document_type,
            file_name=file_name,
            file_path=f"uploads/{application.pk}/{file_name}",
            file_size=size,
            mime_type=mime_type,
        )


@pytest.fixture
def advance():
    """Apply (actor, action, kwargs) steps in order and return the reloaded application"""

    def run(application, *steps):
        for actor, action, kwargs in steps:
            application = perform_transition(application, actor, action, **kwargs)
        return application

    return run


@pytest.fixture
def submitted_application(owner, make_application, advance):
    application = make_application(owner)
    return advance(application, (owner, 'submit', {
        'updates': {'application_number': format_application_number(application.pk, 'Shimla', 2025)},
    }))


@pytest.fixture
def forwarded_application(submitted_application, da, advance):
    submitted_application.documents.update(verification_status='verified', verified_by=da)
    return advance(
        submitted_application,
        (da, 'start_scrutiny', {}),
        (da, 'forward_to_dtdo', {'remarks': 'All documents verified'}),
    )


@pytest.fixture
def dtdo_review_application(forwarded_application, dtdo, advance):
    return advance(forwarded_application, (dtdo, 'dtdo_accept', {'remarks': 'Proceed to inspection'}))
