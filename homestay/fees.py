"""
HP Homestay Portal - Registration Fees & Room Rules
HP Homestay Rules 2025: flat fees by category and location, GST included
"""

from decimal import Decimal, ROUND_HALF_UP

from .exceptions import ValidationFailed


FEE_MATRIX = {
    'diamond': {'mc': Decimal('18000'), 'tcp': Decimal('12000'), 'gp': Decimal('10000')},
    'gold': {'mc': Decimal('12000'), 'tcp': Decimal('8000'), 'gp': Decimal('6000')},
    'silver': {'mc': Decimal('8000'), 'tcp': Decimal('5000'), 'gp': Decimal('3000')},
}

THREE_YEAR_DISCOUNT = Decimal('0.10')
FEMALE_OWNER_DISCOUNT = Decimal('0.05')
PANGI_DISCOUNT = Decimal('0.50')

MAX_ROOMS_ALLOWED = 6
MAX_BEDS_ALLOWED = 12

# Inclusive nightly tariff bands; None means no upper cap
CATEGORY_RATE_BANDS = [
    ('silver', Decimal('0'), Decimal('2999')),
    ('gold', Decimal('3000'), Decimal('10000')),
    ('diamond', Decimal('10001'), None),
]

CATEGORY_RANK = {'silver': 1, 'gold': 2, 'diamond': 3}

PAISE = Decimal('0.01')


def _money(value):
    return value.quantize(PAISE, rounding=ROUND_HALF_UP)


def calculate_fee(category, location_type, validity_years=1, owner_gender=None, is_pangi=False):
    """
    Fee breakdown for the certificate period. Discounts compound: three-year
    validity first, then female owner, then Pangi sub-division.
    """
    try:
        base_fee = FEE_MATRIX[category][location_type]
    except KeyError:
        raise ValidationFailed(f"No fee defined for category {category} in location {location_type}")

    total_before_discounts = base_fee * validity_years

    validity_discount = Decimal('0')
    if validity_years == 3:
        validity_discount = total_before_discounts * THREE_YEAR_DISCOUNT

    female_owner_discount = Decimal('0')
    if owner_gender == 'female':
        female_owner_discount = (total_before_discounts - validity_discount) * FEMALE_OWNER_DISCOUNT

    pangi_discount = Decimal('0')
    if is_pangi:
        pangi_discount = (total_before_discounts - validity_discount - female_owner_discount) * PANGI_DISCOUNT

    total_discount = validity_discount + female_owner_discount + pangi_discount
    return {
        'base_fee': _money(base_fee),
        'total_before_discounts': _money(total_before_discounts),
        'validity_discount': _money(validity_discount),
        'female_owner_discount': _money(female_owner_discount),
        'pangi_discount': _money(pangi_discount),
        'total_discount': _money(total_discount),
        'total_fee': _money(total_before_discounts - total_discount),
    }


def fee_fields_for(application):
    """Fee columns for an application, ready to be written on submit"""
    if not application.requires_payment:
        zero = _money(Decimal('0'))
        return {
            'base_fee': zero,
            'total_before_discounts': zero,
            'validity_discount': zero,
            'female_owner_discount': zero,
            'pangi_discount': zero,
            'total_discount': zero,
            'total_fee': zero,
        }
    return calculate_fee(
        application.category,
        application.location_type,
        validity_years=application.certificate_validity_years or 1,
        owner_gender=application.owner_gender,
        is_pangi=application.is_pangi_sub_division,
    )


def suggest_category(highest_room_rate):
    rate = Decimal(highest_room_rate or 0)
    if rate <= 0:
        return 'silver'
    for category, minimum, maximum in CATEGORY_RATE_BANDS:
        if rate >= minimum and (maximum is None or rate <= maximum):
            return category
    return 'diamond'


def validate_room_configuration(application):
    """Raise ValidationFailed for the first room or tariff rule the application breaks"""
    total_rooms = application.compute_total_rooms()
    if total_rooms <= 0:
        raise ValidationFailed('Please configure at least one room before submitting the application.')
    if total_rooms > MAX_ROOMS_ALLOWED:
        raise ValidationFailed(f'HP Homestay Rules 2025 permit a maximum of {MAX_ROOMS_ALLOWED} rooms.')

    if application.compute_total_beds() > MAX_BEDS_ALLOWED:
        raise ValidationFailed(
            f'Total beds cannot exceed {MAX_BEDS_ALLOWED} across all room types. Please adjust the bed counts.'
        )
    if (application.attached_washrooms or 0) < total_rooms:
        raise ValidationFailed(
            'Every room must have its own washroom. '
            'Increase attached washrooms to at least the total number of rooms.'
        )

    room_types = [
        ('single_bed_rooms', 'single_bed_room_rate', 'Single bed room'),
        ('double_bed_rooms', 'double_bed_room_rate', 'Double bed room'),
        ('family_suites', 'family_suite_rate', 'Family suite'),
    ]
    for count_field, rate_field, label in room_types:
        if getattr(application, count_field) and not getattr(application, rate_field):
            raise ValidationFailed(f'Per-room-type rates are mandatory. {label} rate is required.')

    highest_rate = application.highest_room_rate()
    recommended = suggest_category(highest_rate)
    if CATEGORY_RANK.get(application.category, 0) < CATEGORY_RANK[recommended]:
        raise ValidationFailed(
            f'Your highest tariff of Rs {int(highest_rate):,} falls under the {recommended.title()} bracket. '
            f'Please switch to {recommended.title()} or higher to remain compliant.'
        )
