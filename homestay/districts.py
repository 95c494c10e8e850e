"""
HP Homestay Portal - District Matching & Routing

Officers and applications carry free-text district labels ("Shimla HQ",
"Shimla Division", "Hamirpur (serving Una)"). Scoping compares them by
token overlap after administrative boilerplate is stripped.
"""

import re

from django.db.models import Q


HP_DISTRICTS = [
    'Bilaspur',
    'Chamba',
    'Hamirpur',
    'Kangra',
    'Kinnaur',
    'Kullu',
    'Lahaul and Spiti',
    'Mandi',
    'Shimla',
    'Sirmaur',
    'Solan',
    'Una',
]

DEFAULT_STOP_WORDS = (
    'division', 'sub-division', 'subdivision', 'hq', 'office', 'district',
    'development', 'tourism', 'ddo', 'dto', 'dt', 'section', 'unit', 'range',
    'circle', 'zone', 'serving', 'for', 'the', 'at', 'and',
)

DISTRICT_CODE_OVERRIDES = {
    'shimla': 'SML',
    'shimla division': 'SML',
    'shimla hq': 'SML',
    'kullu': 'KUL',
    'kangra': 'KNG',
    'dharamsala': 'KNG',
    'hamirpur': 'HMP',
    'una': 'UNA',
    'mandi': 'MDI',
    'chamba': 'CHM',
    'bharmour': 'BRM',
    'lahaul': 'LHL',
    'lahaul & spiti': 'LHS',
    'lahaul and spiti': 'LHS',
    'kinnaur': 'KNR',
    'sirmaur': 'SMR',
    'solan': 'SOL',
    'bilaspur': 'BIL',
    'pangi': 'PNG',
    'kaza': 'KZA',
}

FALLBACK_DISTRICT_CODE = 'HPG'

LAHAUL_SPITI_LABELS = ('lahaul and spiti', 'lahaul & spiti', 'lahaul-spiti', 'lahaul spiti')


class DistrictMatchConfig:
    """Stop words and token length cutoff used when normalising district labels"""

    def __init__(self, stop_words=None, min_token_length=3):
        self.stop_words = tuple(word.lower() for word in (stop_words or DEFAULT_STOP_WORDS))
        self.min_token_length = min_token_length
        # Longest first so "sub-division" wins over "division"
        alternatives = sorted(self.stop_words, key=len, reverse=True)
        self.stop_word_pattern = re.compile(
            r'\b(' + '|'.join(re.escape(word) for word in alternatives) + r')\b'
        )

    def __repr__(self):
        return f"DistrictMatchConfig(stop_words={len(self.stop_words)}, min_token_length={self.min_token_length})"


DEFAULT_MATCH_CONFIG = DistrictMatchConfig()


def normalize_district_tokens(value, config=None):
    """Return the distinct significant tokens of a district label, in order"""
    config = config or DEFAULT_MATCH_CONFIG
    if not value:
        return []

    cleaned = value.lower().replace('&', ' and ')
    cleaned = config.stop_word_pattern.sub(' ', cleaned)
    cleaned = re.sub(r'[^a-z\s]', ' ', cleaned)
    cleaned = re.sub(r'\s+', ' ', cleaned).strip()
    if not cleaned:
        return []

    tokens = []
    for token in cleaned.split(' '):
        if len(token) >= config.min_token_length and token not in tokens:
            tokens.append(token)
    return tokens


def _plain(value):
    return (value or '').strip().lower()


def districts_match(officer_district, target_district, config=None):
    if not officer_district or not target_district:
        return _plain(officer_district) == _plain(target_district)
    if _plain(officer_district) == _plain(target_district):
        return True

    officer_tokens = normalize_district_tokens(officer_district, config)
    target_tokens = normalize_district_tokens(target_district, config)
    if not officer_tokens or not target_tokens:
        return False
    return any(token in target_tokens for token in officer_tokens)


def district_filter(field_name, officer_district, config=None):
    """Build a Q object selecting rows whose district matches the officer's"""
    query = Q(**{field_name: officer_district})
    for token in normalize_district_tokens(officer_district, config):
        query |= Q(**{f'{field_name}__icontains': token})
    return query


def derive_routing_label(district, tehsil=None):
    """
    Chamba and Lahaul-Spiti are split across several district offices;
    return the label of the office that should process the application.
    """
    normalized = _plain(district)
    if not normalized:
        return district

    normalized_tehsil = _plain(tehsil)
    if normalized == 'chamba':
        if normalized_tehsil == 'pangi':
            return 'Pangi'
        if normalized_tehsil in ('bharmour', 'holi'):
            return 'Bharmour'
        return 'Chamba'

    if normalized in LAHAUL_SPITI_LABELS:
        if normalized_tehsil in ('kaza', 'spiti'):
            return 'Lahaul-Spiti (Kaza)'
        return 'Lahaul'

    return district


def district_code(district):
    normalized = _plain(district)
    if not normalized:
        return FALLBACK_DISTRICT_CODE
    if normalized in DISTRICT_CODE_OVERRIDES:
        return DISTRICT_CODE_OVERRIDES[normalized]
    letters = re.sub(r'[^a-z]', '', normalized)
    return letters[:3].upper() or FALLBACK_DISTRICT_CODE


def format_application_number(sequence, district, year):
    return f"HP-HS-{year}-{district_code(district)}-{sequence:06d}"
