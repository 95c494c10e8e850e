"""
Tests for the JSON API: session auth, guards, the owner/DA/DTDO workflow and reporting endpoints
"""

from datetime import timedelta
from io import BytesIO

import openpyxl
import pytest
from django.utils import timezone

from homestay import workflow
from homestay.audit import timeline_is_connected
from homestay.models import HomestayApplication, ApplicationAction, InspectionOrder
from homestay.views import SEARCH_FILTER_MESSAGE


pytestmark = pytest.mark.django_db


def post(client, url, payload=None):
    return client.post(url, payload or {}, content_type='application/json')


def patch(client, url, payload=None):
    return client.patch(url, payload or {}, content_type='application/json')


@pytest.fixture
def schedule(dtdo, da, advance):
    """Put an application into inspection_scheduled with an order for the Shimla DA"""

    def run(application, days_from_now=-1):
        now = timezone.now()
        inspection_date = now + timedelta(days=days_from_now)
        order = InspectionOrder.objects.create(
            application=application, scheduled_by=dtdo, scheduled_date=now, assigned_to=da,
            assigned_date=now, inspection_date=inspection_date, inspection_address=application.address,
        )
        application = advance(application, (dtdo, 'schedule_inspection', {
            'updates': {'da': da, 'site_inspection_scheduled_date': inspection_date},
        }))
        return application, order

    return run


class TestAuth:

    def test_login_me_logout(self, client, owner):
        response = post(client, '/api/auth/login', {'username': 'owner.shimla', 'password': 'password123'})
        assert response.status_code == 200
        assert response.json()['user']['role'] == workflow.PROPERTY_OWNER

        assert client.get('/api/auth/me').json()['user']['username'] == 'owner.shimla'
        assert post(client, '/api/auth/logout').status_code == 200
        assert client.get('/api/auth/me').status_code == 401

    def test_bad_password(self, client, owner):
        response = post(client, '/api/auth/login', {'username': 'owner.shimla', 'password': 'wrong'})
        assert response.status_code == 401
        assert response.json()['message'] == 'Invalid username or password'

    def test_csrf_cookie(self, client):
        response = client.get('/api/auth/csrf')
        assert response.status_code == 200
        assert 'csrftoken' in response.cookies

    def test_anonymous_requests(self, client, submitted_application):
        assert client.get('/api/applications').status_code == 401
        response = post(client, f'/api/applications/{submitted_application.pk}/review', {'action': 'approve'})
        assert response.status_code == 401


class TestDrafts:

    def test_create_and_reload_draft(self, client, owner):
        client.force_login(owner)
        response = post(client, '/api/applications/draft', {
            'propertyName': 'Snow Peak Homestay', 'district': 'Shimla', 'singleBedRooms': 2,
        })
        assert response.status_code == 201
        created = response.json()['application']
        assert created['status'] == workflow.DRAFT
        assert created['propertyName'] == 'Snow Peak Homestay'
        assert created['totalRooms'] == 2

        response = post(client, '/api/applications/draft')
        assert response.status_code == 200
        assert response.json()['message'] == 'Existing draft loaded'
        assert response.json()['application']['id'] == created['id']

    def test_one_application_per_owner(self, client, owner, submitted_application):
        client.force_login(owner)
        response = post(client, '/api/applications/draft')
        assert response.status_code == 409
        assert response.json()['existingApplicationId'] == submitted_application.pk
        assert response.json()['status'] == workflow.SUBMITTED

    def test_staff_cannot_create(self, client, da):
        client.force_login(da)
        response = post(client, '/api/applications/draft')
        assert response.status_code == 403
        assert response.json()['message'] == 'Only property owners can create applications'

    def test_update_draft(self, client, owner, make_application):
        application = make_application(owner)
        client.force_login(owner)

        response = patch(client, f'/api/applications/{application.pk}/draft', {'ownerAadhaar': '1234'})
        assert response.status_code == 400
        assert response.json()['message'] == 'owner_aadhaar: Aadhaar must be 12 digits'

        response = patch(client, f'/api/applications/{application.pk}/draft', {
            'ownerAadhaar': '123412341234', 'doubleBedRooms': 3, 'attachedWashrooms': 4,
        })
        assert response.status_code == 200
        data = response.json()['application']
        assert data['ownerAadhaar'] == '123412341234'
        assert data['totalRooms'] == 4
        assert data['propertyName'] == 'Pine View Homestay'

    def test_only_owner_can_edit(self, client, other_owner, make_application, owner):
        application = make_application(owner)
        client.force_login(other_owner)
        assert patch(client, f'/api/applications/{application.pk}/draft', {'pincode': '171002'}).status_code == 403

    def test_submitted_application_is_locked(self, client, owner, submitted_application):
        client.force_login(owner)
        response = patch(client, f'/api/applications/{submitted_application.pk}/draft', {'pincode': '171002'})
        assert response.status_code == 400


class TestDocumentUpload:

    def upload(self, client, application, **overrides):
        payload = {
            'documentType': 'revenue_papers', 'fileName': 'jamabandi.pdf', 'filePath': 'uploads/jamabandi.pdf',
            'fileSize': 200_000, 'mimeType': 'application/pdf',
        }
        payload.update(overrides)
        return post(client, f'/api/applications/{application.pk}/documents', payload)

    def test_upload_and_list(self, client, owner, make_application):
        application = make_application(owner, documents=False)
        client.force_login(owner)

        response = self.upload(client, application)
        assert response.status_code == 201
        assert response.json()['document']['verificationStatus'] == 'pending'

        documents = client.get(f'/api/applications/{application.pk}/documents').json()['documents']
        assert [d['documentType'] for d in documents] == ['revenue_papers']

    def test_policy_is_enforced(self, client, owner, make_application):
        application = make_application(owner, documents=False)
        client.force_login(owner)

        assert self.upload(client, application, fileSize=5 * 1024 * 1024).status_code == 400
        assert self.upload(client, application).status_code == 201
        assert self.upload(client, application).status_code == 201
        response = self.upload(client, application)
        assert response.status_code == 400
        assert response.json()['message'].startswith('At most 2 file(s)')

    def test_only_owner_uploads(self, client, da, owner, make_application):
        application = make_application(owner, documents=False)
        client.force_login(da)
        assert self.upload(client, application).status_code == 403

    def test_locked_after_submit(self, client, owner, submitted_application):
        client.force_login(owner)
        assert self.upload(client, submitted_application).status_code == 400


class TestSubmit:

    def test_submit(self, client, owner, make_application):
        application = make_application(owner)
        client.force_login(owner)

        response = post(client, f'/api/applications/{application.pk}/submit')
        assert response.status_code == 200
        data = response.json()['application']
        assert data['status'] == workflow.SUBMITTED
        assert data['applicationNumber'] == f"HP-HS-{timezone.now().year}-SML-{application.pk:06d}"
        assert data['totalFee'] == '3000.00'
        assert data['submittedAt'] is not None

    def test_documents_required(self, client, owner, make_application):
        application = make_application(owner, documents=False)
        client.force_login(owner)

        response = post(client, f'/api/applications/{application.pk}/submit')
        assert response.status_code == 400
        assert response.json()['message'] == 'Revenue Papers (Jamabandi & Tatima) is required before submission'

    def test_room_rules(self, client, owner, make_application):
        application = make_application(owner, attached_washrooms=1)
        client.force_login(owner)
        response = post(client, f'/api/applications/{application.pk}/submit')
        assert response.status_code == 400
        assert response.json()['message'].startswith('Every room must have its own washroom.')

    def test_routed_district(self, client, make_user, make_application):
        owner = make_user(workflow.PROPERTY_OWNER, district='Chamba')
        application = make_application(owner, district='Chamba', tehsil='Pangi', is_pangi_sub_division=True)
        client.force_login(owner)

        data = post(client, f'/api/applications/{application.pk}/submit').json()['application']
        assert data['district'] == 'Pangi'
        assert '-PNG-' in data['applicationNumber']
        assert data['pangiDiscount'] == '1500.00'

    def test_submit_twice(self, client, owner, submitted_application):
        client.force_login(owner)
        response = post(client, f'/api/applications/{submitted_application.pk}/submit')
        assert response.status_code == 400
        assert response.json() == {'message': 'Only draft applications can be submitted', 'status': 'submitted'}

    def test_other_owner(self, client, other_owner, owner, make_application):
        application = make_application(owner)
        client.force_login(other_owner)
        assert post(client, f'/api/applications/{application.pk}/submit').status_code == 403


class TestGuards:

    def test_owner_cannot_scrutinise(self, client, owner, submitted_application):
        client.force_login(owner)
        assert post(client, f'/api/da/applications/{submitted_application.pk}/start-scrutiny').status_code == 403

    def test_other_district(self, client, kullu_da, submitted_application):
        client.force_login(kullu_da)
        response = post(client, f'/api/da/applications/{submitted_application.pk}/start-scrutiny')
        assert response.status_code == 403
        assert client.get(f'/api/applications/{submitted_application.pk}').status_code == 403

    def test_missing_application(self, client, da):
        client.force_login(da)
        response = post(client, '/api/da/applications/999999/start-scrutiny')
        assert response.status_code == 404
        assert response.json()['message'] == 'Application not found'

    def test_wrong_status(self, client, da, owner, make_application):
        application = make_application(owner)
        client.force_login(da)
        response = post(client, f'/api/da/applications/{application.pk}/start-scrutiny')
        assert response.status_code == 400
        assert response.json()['status'] == workflow.DRAFT

    def test_wrong_method(self, client, da, submitted_application):
        client.force_login(da)
        assert client.get(f'/api/da/applications/{submitted_application.pk}/start-scrutiny').status_code == 405

    def test_whitespace_remarks(self, client, da, submitted_application, advance):
        advance(submitted_application, (da, 'start_scrutiny', {}))
        client.force_login(da)

        response = post(client, f'/api/da/applications/{submitted_application.pk}/forward-to-dtdo', {'remarks': '   '})
        assert response.status_code == 400
        assert response.json()['message'] == 'Scrutiny remarks are required before forwarding.'
        assert HomestayApplication.objects.get(pk=submitted_application.pk).status == workflow.UNDER_SCRUTINY

    def test_unverified_documents_block_forwarding(self, client, da, submitted_application, advance):
        advance(submitted_application, (da, 'start_scrutiny', {}))
        client.force_login(da)
        response = post(client, f'/api/da/applications/{submitted_application.pk}/forward-to-dtdo', {'remarks': 'ok'})
        assert response.status_code == 400
        assert response.json()['message'].startswith('Verify every document')

    @pytest.mark.parametrize('document_id', ['abc', None, True, [1]])
    def test_scrutiny_document_id_must_be_an_integer(self, client, da, submitted_application, advance, document_id):
        advance(submitted_application, (da, 'start_scrutiny', {}))
        client.force_login(da)
        response = post(client, f'/api/da/applications/{submitted_application.pk}/save-scrutiny', {
            'verifications': [{'documentId': document_id, 'status': 'verified'}],
        })
        assert response.status_code == 400
        assert response.json()['message'] == 'verifications: documentId must be an integer'

    def test_admins_cannot_review(self, client, make_user, dtdo_review_application, dtdo, advance):
        application = advance(
            dtdo_review_application,
            (dtdo, 'move_to_inspection', {}),
            (dtdo, 'complete_inspection', {'target_status': workflow.PAYMENT_PENDING}),
        )
        for role in (workflow.ADMIN, workflow.SUPER_ADMIN):
            client.force_login(make_user(role))
            response = post(client, f'/api/applications/{application.pk}/review', {'action': 'approve'})
            assert response.status_code == 403
        assert HomestayApplication.objects.get(pk=application.pk).status == workflow.PAYMENT_PENDING


class TestFullWorkflow:

    def test_walk_to_approval(self, client, owner, da, dtdo, make_application):
        application = make_application(owner)
        pk = application.pk

        client.force_login(owner)
        assert post(client, f'/api/applications/{pk}/submit').status_code == 200

        client.force_login(da)
        assert post(client, f'/api/da/applications/{pk}/start-scrutiny').status_code == 200
        verifications = [{'documentId': doc.pk, 'status': 'verified'} for doc in application.documents.all()]
        assert post(client, f'/api/da/applications/{pk}/save-scrutiny', {'verifications': verifications}).status_code == 200
        response = post(client, f'/api/da/applications/{pk}/forward-to-dtdo', {'remarks': 'Documents verified'})
        assert response.json()['application']['status'] == workflow.FORWARDED_TO_DTDO

        client.force_login(dtdo)
        response = post(client, f'/api/dtdo/applications/{pk}/accept', {'remarks': 'Schedule the site visit'})
        assert response.json()['application']['status'] == workflow.DTDO_REVIEW
        assert [d['id'] for d in client.get('/api/dtdo/available-das').json()['das']] == [da.pk]

        inspection_date = timezone.now() - timedelta(days=1)
        response = post(client, '/api/dtdo/schedule-inspection', {
            'applicationId': pk, 'inspectionDate': inspection_date.isoformat(), 'assignedTo': da.pk,
        })
        assert response.status_code == 201
        order_id = response.json()['inspection']['id']

        client.force_login(owner)
        schedule = client.get(f'/api/applications/{pk}/inspection-schedule').json()
        assert schedule['acknowledged'] is False
        assert post(client, f'/api/applications/{pk}/inspection-schedule/acknowledge').status_code == 200
        assert client.get(f'/api/applications/{pk}/inspection-schedule').json()['acknowledged'] is True

        client.force_login(da)
        assert [i['id'] for i in client.get('/api/da/inspections').json()['inspections']] == [order_id]
        response = post(client, f'/api/da/inspections/{order_id}/submit-report', {
            'actualInspectionDate': timezone.localdate().isoformat(),
            'roomCountVerified': True,
            'overallSatisfactory': True,
            'recommendation': 'approve',
            'detailedFindings': 'Rooms and washrooms as declared',
        })
        assert response.status_code == 201
        assert response.json()['application']['status'] == workflow.INSPECTION_UNDER_REVIEW

        client.force_login(dtdo)
        assert client.get(f'/api/dtdo/inspection-report/{pk}').json()['report']['recommendation'] == 'approve'
        response = post(client, f'/api/dtdo/inspection-report/{pk}/approve')
        assert response.json()['application']['status'] == workflow.VERIFIED_FOR_PAYMENT

        client.force_login(owner)
        response = post(client, f'/api/applications/{pk}/payments')
        assert response.status_code == 201
        payment_id = response.json()['payment']['id']
        assert response.json()['application']['status'] == workflow.PAYMENT_PENDING

        client.force_login(dtdo)
        assert [p['id'] for p in client.get('/api/payments/pending').json()['payments']] == [payment_id]
        response = post(client, f'/api/payments/{payment_id}/confirm', {'receiptNumber': 'RCPT-0001'})
        assert response.status_code == 200
        data = response.json()
        assert data['application']['status'] == workflow.APPROVED
        assert data['application']['approvedAt'] is not None
        assert data['application']['certificateNumber'].startswith(f"HP-HST-{timezone.localdate().year}-")
        assert data['payment']['paymentStatus'] == 'success'

        client.force_login(owner)
        timeline = client.get(f'/api/applications/{pk}/timeline').json()['timeline']
        assert [item['action'] for item in timeline] == [
            'owner_submitted', 'start_scrutiny', 'forwarded_to_dtdo', 'dtdo_accept', 'inspection_scheduled',
            'inspection_acknowledged', 'inspection_completed', 'verified_for_payment', 'payment_initiated',
            'payment_confirmed', 'certificate_issued',
        ]
        assert timeline_is_connected(HomestayApplication.objects.get(pk=pk))

    def test_state_review(self, client, state_officer, dtdo_review_application, dtdo, advance):
        application = advance(
            dtdo_review_application,
            (dtdo, 'move_to_inspection', {}),
            (dtdo, 'complete_inspection', {'target_status': workflow.PAYMENT_PENDING}),
        )
        client.force_login(state_officer)
        response = post(client, f'/api/applications/{application.pk}/review', {'action': 'approve'})
        assert response.status_code == 200
        assert response.json()['application']['status'] == workflow.APPROVED
        assert response.json()['application']['approvedAt'] is not None


class TestCorrections:

    def test_send_back_and_resubmit(self, client, owner, da, submitted_application, advance):
        pk = submitted_application.pk
        advance(submitted_application, (da, 'start_scrutiny', {}))

        client.force_login(da)
        response = post(client, f'/api/da/applications/{pk}/send-back', {'reason': 'Upload the current water bill'})
        assert response.json()['application']['status'] == workflow.REVERTED_TO_APPLICANT

        client.force_login(owner)
        response = patch(client, f'/api/applications/{pk}', {'propertyName': 'Pine View Homestay & Cafe'})
        assert response.status_code == 200
        data = response.json()['application']
        assert data['status'] == workflow.SUBMITTED
        assert data['correctionSubmissionCount'] == 1
        assert data['propertyName'] == 'Pine View Homestay & Cafe'
        assert data['clarificationRequested'] is None

        entry = ApplicationAction.objects.filter(application_id=pk).last()
        assert entry.action == 'correction_resubmitted'
        assert entry.feedback.endswith('(cycle 1)')

        client.force_login(da)
        listed = client.get('/api/da/applications').json()['applications']
        assert listed[0]['latestCorrection']['feedback'] == entry.feedback

    def test_resubmit_needs_corrections_status(self, client, owner, submitted_application):
        client.force_login(owner)
        response = patch(client, f'/api/applications/{submitted_application.pk}', {'propertyName': 'x'})
        assert response.status_code == 400

    def test_generic_send_back_needs_feedback(self, client, dtdo, forwarded_application):
        client.force_login(dtdo)
        response = post(client, f'/api/applications/{forwarded_application.pk}/send-back', {'feedback': 'Too short'})
        assert response.status_code == 400
        assert response.json()['message'] == 'Feedback is required (minimum 10 characters)'

        response = post(client, f'/api/applications/{forwarded_application.pk}/send-back', {
            'feedback': 'Property photographs are not legible',
        })
        assert response.json()['application']['status'] == workflow.SENT_BACK_FOR_CORRECTIONS


class TestDtdo:

    def test_accept(self, client, dtdo, forwarded_application):
        client.force_login(dtdo)
        pk = forwarded_application.pk

        response = post(client, f'/api/dtdo/applications/{pk}/accept', {'remarks': '  '})
        assert response.status_code == 400
        assert response.json()['message'] == 'Remarks are required when scheduling an inspection.'

        response = post(client, f'/api/dtdo/applications/{pk}/accept', {'remarks': 'Documents in order'})
        assert response.status_code == 200
        data = response.json()['application']
        assert data['status'] == workflow.DTDO_REVIEW
        assert data['dtdoRemarks'] == 'Documents in order'
        assert data['dtdoId'] == dtdo.pk

    def test_other_district_dtdo(self, client, make_user, forwarded_application):
        client.force_login(make_user(workflow.DISTRICT_TOURISM_OFFICER, district='Kullu'))
        response = post(client, f'/api/dtdo/applications/{forwarded_application.pk}/accept', {'remarks': 'ok'})
        assert response.status_code == 403

    def test_reject_records_reason(self, client, dtdo, forwarded_application):
        client.force_login(dtdo)
        response = post(client, f'/api/dtdo/applications/{forwarded_application.pk}/reject', {
            'remarks': 'Property is a commercial hotel',
        })
        data = response.json()['application']
        assert data['status'] == workflow.REJECTED
        assert data['rejectionReason'] == 'Property is a commercial hotel'

    def test_schedule_with_da_from_other_district(self, client, dtdo, kullu_da, dtdo_review_application):
        client.force_login(dtdo)
        response = post(client, '/api/dtdo/schedule-inspection', {
            'applicationId': dtdo_review_application.pk,
            'inspectionDate': timezone.now().isoformat(),
            'assignedTo': kullu_da.pk,
        })
        assert response.status_code == 400
        assert response.json()['message'] == 'Selected DA is not available for your district'

    def test_complete_inspection(self, client, dtdo, dtdo_review_application, advance):
        application = advance(dtdo_review_application, (dtdo, 'move_to_inspection', {}))
        client.force_login(dtdo)
        url = f'/api/applications/{application.pk}/complete-inspection'

        assert post(client, url, {'outcome': 'corrections_needed'}).status_code == 400

        response = post(client, url, {
            'outcome': 'corrections_needed', 'findings': {'issuesFound': 'Fire extinguisher missing'},
        })
        assert response.json()['application']['status'] == workflow.SENT_BACK_FOR_CORRECTIONS
        entry = ApplicationAction.objects.filter(application=application).last()
        assert entry.issues_found == ['Fire extinguisher missing']


class TestInspectionReport:

    def test_early_inspection_needs_override(self, client, da, dtdo_review_application, schedule):
        application, order = schedule(dtdo_review_application, days_from_now=3)
        client.force_login(da)
        url = f'/api/da/inspections/{order.pk}/submit-report'
        payload = {'actualInspectionDate': timezone.localdate().isoformat(), 'recommendation': 'approve'}

        response = post(client, url, payload)
        assert response.status_code == 400
        assert 'early inspection override' in response.json()['message']

        payload.update({'earlyInspectionOverride': True, 'earlyInspectionReason': 'too soon'})
        assert post(client, url, payload).status_code == 400

        payload['earlyInspectionReason'] = 'Owner travelling on the scheduled date'
        response = post(client, url, payload)
        assert response.status_code == 201
        assert '[Early inspection override]' in response.json()['report']['mandatoryRemarks']

    def test_future_date_rejected(self, client, da, dtdo_review_application, schedule):
        application, order = schedule(dtdo_review_application)
        client.force_login(da)
        tomorrow = timezone.localdate() + timedelta(days=1)
        response = post(client, f'/api/da/inspections/{order.pk}/submit-report', {
            'actualInspectionDate': tomorrow.isoformat(),
        })
        assert response.status_code == 400

    def test_unacknowledged_inspection_is_acknowledged_by_system(self, client, da, dtdo_review_application, schedule):
        application, order = schedule(dtdo_review_application)
        client.force_login(da)
        response = post(client, f'/api/da/inspections/{order.pk}/submit-report', {
            'actualInspectionDate': timezone.localdate().isoformat(), 'recommendation': 'raise_objections',
        })
        assert response.status_code == 201
        assert response.json()['application']['siteInspectionOutcome'] == 'objection'

        acknowledged = ApplicationAction.objects.get(application=application, action='inspection_acknowledged')
        assert acknowledged.actor is None
        assert timeline_is_connected(application)

    def test_only_assigned_da(self, client, make_user, dtdo_review_application, schedule):
        application, order = schedule(dtdo_review_application)
        client.force_login(make_user(workflow.DEALING_ASSISTANT, district='Shimla'))
        response = post(client, f'/api/da/inspections/{order.pk}/submit-report', {
            'actualInspectionDate': timezone.localdate().isoformat(),
        })
        assert response.status_code == 403


class TestListingAndSearch:

    def test_owner_sees_own_applications(self, client, owner, other_owner, submitted_application, make_application):
        make_application(other_owner)
        client.force_login(owner)
        applications = client.get('/api/applications').json()['applications']
        assert [a['id'] for a in applications] == [submitted_application.pk]

    def test_district_scoping(self, client, kullu_da, da, submitted_application):
        client.force_login(kullu_da)
        assert client.get('/api/applications').json()['applications'] == []
        client.force_login(da)
        assert len(client.get('/api/da/applications').json()['applications']) == 1

    def test_status_filter(self, client, state_officer, submitted_application):
        client.force_login(state_officer)
        assert len(client.get('/api/applications?status=submitted').json()['applications']) == 1
        assert client.get('/api/applications?status=approved').json()['applications'] == []

    def test_monitoring_uses_exact_district(self, client, da, dtdo, submitted_application):
        client.force_login(da)
        assert len(client.get('/api/applications/all').json()['applications']) == 1
        client.force_login(dtdo)
        assert client.get('/api/applications/all').json()['applications'] == []

    def test_search_needs_a_filter(self, client, state_officer, submitted_application):
        client.force_login(state_officer)

        response = post(client, '/api/applications/search', {})
        assert response.status_code == 400
        assert response.json()['message'] == SEARCH_FILTER_MESSAGE
        assert post(client, '/api/applications/search', {'status': 'all'}).status_code == 400

        # Unsupported quick-view size counts as no filter
        assert post(client, '/api/applications/search', {'recentLimit': 17}).status_code == 400
        response = post(client, '/api/applications/search', {'recentLimit': 10})
        assert response.status_code == 200
        assert len(response.json()['applications']) == 1

    def test_status_alone_is_a_filter(self, client, state_officer, submitted_application):
        client.force_login(state_officer)

        response = post(client, '/api/applications/search', {'status': 'submitted'})
        assert response.status_code == 200
        assert [a['id'] for a in response.json()['applications']] == [submitted_application.pk]
        assert post(client, '/api/applications/search', {'status': 'approved'}).json()['applications'] == []

    def test_month_and_year_apply_together(self, client, state_officer, submitted_application):
        client.force_login(state_officer)
        today = timezone.localdate()

        assert post(client, '/api/applications/search', {'year': today.year}).status_code == 400
        assert post(client, '/api/applications/search', {'month': today.month}).status_code == 400

        response = post(client, '/api/applications/search', {'month': today.month, 'year': today.year})
        assert [a['id'] for a in response.json()['applications']] == [submitted_application.pk]

    def test_date_range_wins_over_month_and_year(self, client, state_officer, submitted_application):
        client.force_login(state_officer)
        today = timezone.localdate()

        response = post(client, '/api/applications/search', {
            'fromDate': today.isoformat(), 'toDate': today.isoformat(), 'month': 1, 'year': 2001,
        })
        assert [a['id'] for a in response.json()['applications']] == [submitted_application.pk]

        response = post(client, '/api/applications/search', {
            'toDate': (today - timedelta(days=1)).isoformat(), 'month': today.month, 'year': today.year,
        })
        assert response.json()['applications'] == []

    def test_search_by_number(self, client, state_officer, kullu_da, submitted_application):
        payload = {'applicationNumber': submitted_application.application_number.lower()}

        client.force_login(state_officer)
        results = post(client, '/api/applications/search', payload).json()['applications']
        assert [a['id'] for a in results] == [submitted_application.pk]

        client.force_login(kullu_da)
        assert post(client, '/api/applications/search', payload).json()['applications'] == []

    def test_owners_cannot_search(self, client, owner):
        client.force_login(owner)
        assert post(client, '/api/applications/search', {'recentLimit': 10}).status_code == 403


class TestTimelineAccess:

    def test_access(self, client, owner, other_owner, kullu_da, submitted_application):
        url = f'/api/applications/{submitted_application.pk}/timeline'

        client.force_login(other_owner)
        assert client.get(url).status_code == 403

        client.force_login(owner)
        timeline = client.get(url).json()['timeline']
        assert timeline[0]['action'] == 'owner_submitted'
        assert timeline[0]['actor']['role'] == workflow.PROPERTY_OWNER

        client.force_login(kullu_da)
        assert client.get(url).status_code == 200


class TestSettingsAndExport:

    def test_upload_policy(self, client, owner):
        client.force_login(owner)
        policy = client.get('/api/settings/upload-policy').json()
        assert policy['maxFilesPerType'] == {'property_photo': 10, 'default': 2}
        assert policy['documents']['allowedExtensions'] == ['.pdf']

    def test_export(self, client, da, submitted_application):
        client.force_login(da)
        response = client.get('/api/applications/export')
        assert response.status_code == 200
        assert response['Content-Type'] == 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'

        ws = openpyxl.load_workbook(BytesIO(response.content)).active
        assert ws.title == 'Applications'
        assert ws['A1'].value == 'Application Number'
        assert ws['A2'].value == submitted_application.application_number
        assert ws['G2'].value == 'Submitted'

    def test_export_is_staff_only(self, client, owner):
        client.force_login(owner)
        assert client.get('/api/applications/export').status_code == 403
