"""
HP Homestay Portal - Demo Application Seeding
Creates one application per demo owner and walks each to a different workflow stage

Usage: python manage.py seed_applications
Run seed_data first.
"""

from datetime import timedelta
from decimal import Decimal

from django.core.management.base import BaseCommand
from django.utils import timezone

from homestay import workflow
from homestay.districts import derive_routing_label, district_code, format_application_number
from homestay.fees import fee_fields_for, validate_room_configuration
from homestay.models import (
    User, HomestayApplication, ApplicationDocument, InspectionOrder, InspectionReport, Payment,
)
from homestay.transitions import perform_transition


DEMO_DOCUMENTS = [
    ('revenue_papers', 'jamabandi.pdf', 'application/pdf', 350_000),
    ('undertaking_form_c', 'form_c.pdf', 'application/pdf', 120_000),
    ('commercial_electricity_bill', 'electricity_bill.pdf', 'application/pdf', 90_000),
    ('commercial_water_bill', 'water_bill.pdf', 'application/pdf', 85_000),
    ('property_photo', 'front_view.jpg', 'image/jpeg', 800_000),
    ('property_photo', 'room_view.jpg', 'image/jpeg', 650_000),
]

# owner username -> (property, tehsil, category, location, stage to stop at)
DEMO_APPLICATIONS = {
    'owner.rajesh': ('Deodar Heights Homestay', 'Shimla (Urban)', 'gold', 'mc', workflow.APPROVED),
    'owner.sunita': ('Kalpa Apple Orchard Stay', 'Kalpa', 'silver', 'gp', workflow.UNDER_SCRUTINY),
    'owner.vikram': ('Beas Riverside Cottage', 'Manali', 'gold', 'tcp', workflow.REVERTED_TO_APPLICANT),
    'owner.meena': ('Dhauladhar View Homestay', 'Dharamshala', 'silver', 'gp', workflow.INSPECTION_SCHEDULED),
    'owner.tashi': ('Keylong Mountain Home', 'Keylong', 'silver', 'gp', workflow.DRAFT),
}


class Command(BaseCommand):
    help = 'Seeds demo homestay applications at different workflow stages'

    def handle(self, *args, **options):
        count = 0
        for username, (property_name, tehsil, category, location_type, stop_at) in DEMO_APPLICATIONS.items():
            owner = User.objects.filter(username=username).first()
            if owner is None:
                self.stdout.write(self.style.ERROR(f"Owner {username} not found. Run seed_data first!"))
                continue
            if HomestayApplication.objects.filter(owner=owner).exists():
                self.stdout.write(self.style.WARNING(f"  - Skipping {username}: application already exists"))
                continue

            application = self.create_draft(owner, property_name, tehsil, category, location_type)
            if stop_at != workflow.DRAFT:
                application = self.walk(application, stop_at)

            count += 1
            self.stdout.write(self.style.SUCCESS(
                f"  ✓ Application: {application.application_number or f'Draft #{application.pk}'} "
                f"for {owner.display_name} ({application.status})"
            ))

        self.stdout.write(self.style.SUCCESS(f"Done! Seeded {count} applications"))

    def create_draft(self, owner, property_name, tehsil, category, location_type):
        application = HomestayApplication.objects.create(
            owner=owner,
            owner_name=owner.display_name,
            owner_mobile=owner.mobile or '',
            owner_email=owner.email or '',
            owner_gender='female' if owner.username in ('owner.sunita', 'owner.meena', 'owner.tashi') else 'male',
            property_name=property_name,
            address=f"{property_name}, {tehsil}, {owner.district}",
            district=owner.district,
            tehsil=tehsil,
            pincode='171001',
            category=category,
            location_type=location_type,
            single_bed_rooms=1,
            single_bed_room_rate=Decimal('1800'),
            double_bed_rooms=2,
            double_bed_room_rate=Decimal('3500') if category == 'gold' else Decimal('2500'),
            attached_washrooms=3,
            certificate_validity_years=1,
        )
        application.total_rooms = application.compute_total_rooms()
        application.save(update_fields=['total_rooms'])

        for document_type, file_name, mime_type, size in DEMO_DOCUMENTS:
            ApplicationDocument.objects.create(
                application=application,
                document_type=document_type,
                file_name=file_name,
                file_path=f"uploads/{application.pk}/{file_name}",
                file_size=size,
                mime_type=mime_type,
            )
        return application

    def officer(self, role, district):
        prefix = 'da' if role == workflow.DEALING_ASSISTANT else 'dtdo'
        return User.objects.get(username=f"{prefix}.{district_code(district).lower()}")

    def walk(self, application, stop_at):
        owner = application.owner
        district = owner.district
        da = self.officer(workflow.DEALING_ASSISTANT, district)
        dtdo = self.officer(workflow.DISTRICT_TOURISM_OFFICER, district)
        now = timezone.now()

        validate_room_configuration(application)
        routed = derive_routing_label(application.district, application.tehsil)
        updates = fee_fields_for(application)
        updates.update({
            'district': routed,
            'application_number': format_application_number(application.pk, routed, now.year),
        })
        application = perform_transition(application, owner, 'submit', updates=updates)
        application = perform_transition(application, da, 'start_scrutiny')
        if stop_at == workflow.UNDER_SCRUTINY:
            return application

        if stop_at == workflow.REVERTED_TO_APPLICANT:
            return perform_transition(
                application, da, 'da_send_back',
                remarks='Electricity bill is in the name of a previous owner. Upload the current commercial bill.',
            )

        application.documents.update(verification_status='verified', verified_by=da, verification_date=now)
        application = perform_transition(
            application, da, 'forward_to_dtdo', remarks='All documents verified against originals.',
        )
        application = perform_transition(
            application, dtdo, 'dtdo_accept', remarks='Documents in order, proceed to site inspection.',
        )

        inspection_date = now + timedelta(days=3) if stop_at == workflow.INSPECTION_SCHEDULED else now - timedelta(days=2)
        order = InspectionOrder.objects.create(
            application=application,
            scheduled_by=dtdo,
            scheduled_date=now,
            assigned_to=da,
            assigned_date=now,
            inspection_date=inspection_date,
            inspection_address=application.address,
            status='scheduled',
        )
        application = perform_transition(
            application, dtdo, 'schedule_inspection',
            updates={'da': da, 'site_inspection_scheduled_date': inspection_date},
            feedback=f"Inspection scheduled on {inspection_date:%d %b %Y} with {da.display_name}",
        )
        if stop_at == workflow.INSPECTION_SCHEDULED:
            return application

        application = perform_transition(
            application, owner, 'acknowledge_inspection',
            feedback=f"Owner acknowledged the inspection on {inspection_date:%d %b %Y}",
        )
        InspectionReport.objects.create(
            inspection_order=order,
            application=application,
            submitted_by=da,
            submitted_date=now,
            actual_inspection_date=timezone.localtime(inspection_date).date(),
            room_count_verified=True,
            actual_room_count=application.total_rooms,
            category_meets_standards=True,
            recommended_category=application.category,
            fire_safety_compliant=True,
            structural_safety=True,
            overall_satisfactory=True,
            recommendation='approve',
            detailed_findings='Property matches the application. Rooms and washrooms as declared.',
        )
        order.status = 'completed'
        order.save(update_fields=['status', 'updated_at'])
        application = perform_transition(
            application, da, 'submit_inspection_report',
            updates={'site_inspection_outcome': 'recommended'},
            feedback='Property matches the application. Rooms and washrooms as declared.',
        )
        application = perform_transition(application, dtdo, 'verify_for_payment')

        payment = Payment.objects.create(
            application=application,
            amount=application.total_fee,
            payment_gateway='himkosh',
            gateway_transaction_id=f"HK{application.pk:08d}",
        )
        application = perform_transition(
            application, owner, 'initiate_payment', feedback=f"Payment of INR {payment.amount} initiated via HimKosh",
        )

        payment.payment_status = 'success'
        payment.completed_at = now
        payment.confirmed_by = dtdo
        payment.receipt_number = f"RCPT-{application.pk:06d}"
        payment.save()

        issue_date = timezone.localdate()
        return perform_transition(
            application, dtdo, 'confirm_payment',
            updates={
                'certificate_number': f"HP-HST-{issue_date.year}-{application.pk:05d}",
                'certificate_issued_date': issue_date,
                'certificate_expiry_date': issue_date + timedelta(days=365),
            },
            feedback=f"Payment of INR {payment.amount} confirmed",
        )
