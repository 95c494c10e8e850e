"""
HP Homestay Portal - Data Seeding Script
Management command to populate the database with department staff, demo owners and settings

Usage: python manage.py seed_data
"""

from django.core.management.base import BaseCommand
from django.db import transaction

from homestay import workflow
from homestay.amendments import DEFAULT_EXISTING_RC_MIN_ISSUE_DATE, EXISTING_RC_MIN_ISSUE_DATE_SETTING_KEY
from homestay.districts import HP_DISTRICTS, district_code
from homestay.documents import DEFAULT_UPLOAD_POLICY, UPLOAD_POLICY_SETTING_KEY
from homestay.models import (
    User, HomestayApplication, ApplicationDocument, ApplicationAction, InspectionOrder, InspectionReport,
    Payment, Notification, SystemConfiguration,
)


DEFAULT_PASSWORD = 'password123'


class Command(BaseCommand):
    help = 'Seeds the database with HP homestay portal users and settings'

    def add_arguments(self, parser):
        parser.add_argument(
            '--clear',
            action='store_true',
            help='Clear existing data before seeding',
        )

    def handle(self, *args, **options):
        if options['clear']:
            self.stdout.write(self.style.WARNING('Clearing existing data...'))
            self.clear_data()

        self.stdout.write(self.style.SUCCESS('Starting data seeding...'))

        with transaction.atomic():
            self.seed_district_staff()
            self.seed_state_users()
            self.seed_owners()
            self.seed_settings()

        self.stdout.write(self.style.SUCCESS('Data seeding completed successfully!'))

    def clear_data(self):
        """Clear existing data (except superuser)"""
        # Action rows refuse per-instance deletes; the queryset delete does not call it
        for model in [ApplicationAction, Notification, Payment, InspectionReport, InspectionOrder,
                      ApplicationDocument, HomestayApplication, SystemConfiguration]:
            model.objects.all().delete()
        User.objects.filter(is_superuser=False).delete()

    def create_user(self, username, role, full_name, mobile, district='', designation=''):
        user, created = User.objects.get_or_create(
            username=username,
            defaults={
                'role': role,
                'full_name': full_name,
                'mobile': mobile,
                'district': district,
                'designation': designation,
                'email': f'{username}@himachaltourism.gov.in',
                'is_active': True,
            }
        )
        if created:
            user.set_password(DEFAULT_PASSWORD)
            user.save()
            self.stdout.write(f'  ✓ User: {user.display_name} ({user.get_role_display()})')
        return user

    def seed_district_staff(self):
        """One Dealing Assistant and one DTDO per district"""
        self.stdout.write('Seeding district staff...')

        for idx, district in enumerate(HP_DISTRICTS, 1):
            code = district_code(district).lower()
            self.create_user(
                username=f'da.{code}',
                role=workflow.DEALING_ASSISTANT,
                full_name=f'Dealing Assistant {district}',
                mobile=f'98160{idx:05d}',
                district=district,
                designation='Dealing Assistant',
            )
            self.create_user(
                username=f'dtdo.{code}',
                role=workflow.DISTRICT_TOURISM_OFFICER,
                full_name=f'DTDO {district}',
                mobile=f'98170{idx:05d}',
                district=district,
                designation='District Tourism Development Officer',
            )

    def seed_state_users(self):
        self.stdout.write('Seeding state users...')

        self.create_user(
            username='state.officer',
            role=workflow.STATE_OFFICER,
            full_name='State Tourism Officer',
            mobile='9818000001',
            designation='Deputy Director (Tourism)',
        )
        admin = self.create_user(
            username='portal.admin',
            role=workflow.ADMIN,
            full_name='Portal Administrator',
            mobile='9818000002',
            designation='System Administrator',
        )
        if not admin.is_staff:
            admin.is_staff = True
            admin.save(update_fields=['is_staff'])

    def seed_owners(self):
        """Demo property owners"""
        self.stdout.write('Seeding property owners...')

        owners_data = [
            {'username': 'owner.rajesh', 'full_name': 'Rajesh Thakur', 'mobile': '9816011001', 'district': 'Shimla'},
            {'username': 'owner.sunita', 'full_name': 'Sunita Negi', 'mobile': '9816011002', 'district': 'Kinnaur'},
            {'username': 'owner.vikram', 'full_name': 'Vikram Chauhan', 'mobile': '9816011003', 'district': 'Kullu'},
            {'username': 'owner.meena', 'full_name': 'Meena Sharma', 'mobile': '9816011004', 'district': 'Kangra'},
            {'username': 'owner.tashi', 'full_name': 'Tashi Dolma', 'mobile': '9816011005', 'district': 'Lahaul and Spiti'},
        ]

        for data in owners_data:
            self.create_user(role=workflow.PROPERTY_OWNER, **data)

    def seed_settings(self):
        self.stdout.write('Seeding system configuration...')

        if SystemConfiguration.get_setting(UPLOAD_POLICY_SETTING_KEY) is None:
            SystemConfiguration.set_json(
                UPLOAD_POLICY_SETTING_KEY,
                DEFAULT_UPLOAD_POLICY,
                description='Document upload limits (sizes, mime types, per-type file counts)',
            )
            self.stdout.write(f'  ✓ Setting: {UPLOAD_POLICY_SETTING_KEY}')

        if SystemConfiguration.get_setting(EXISTING_RC_MIN_ISSUE_DATE_SETTING_KEY) is None:
            SystemConfiguration.set_json(
                EXISTING_RC_MIN_ISSUE_DATE_SETTING_KEY,
                DEFAULT_EXISTING_RC_MIN_ISSUE_DATE,
                description='Earliest certificate issue date accepted for existing owner onboarding',
            )
            self.stdout.write(f'  ✓ Setting: {EXISTING_RC_MIN_ISSUE_DATE_SETTING_KEY}')
