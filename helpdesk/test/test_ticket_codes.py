"""
Ticket display codes and service-area inference
"""
from datetime import datetime

import pytest

from helpdesk.buisness.tickets.codes import (
    extract_maintenance_ticket_sequence,
    format_maintenance_ticket_code,
    format_ticket_code,
    infer_service_area,
    pad4,
)

# 03:00 UTC on the 15th is still the 14th in Mexico City
LATE_EVENING_LOCAL = datetime(2025, 3, 15, 3, 0)
AFTERNOON_LOCAL = datetime(2025, 3, 15, 18, 0)


@pytest.mark.parametrize('value, expected', [
    (7, '0007'),
    ('42', '0042'),
    ('12345', '2345'),
    ('#a7', '0007'),
])
def test_pad4(value, expected):
    assert pad4(value) == expected


def test_it_code_uses_local_date():
    assert format_ticket_code(42, LATE_EVENING_LOCAL) == '20250314-0042'
    assert format_ticket_code(42, AFTERNOON_LOCAL) == '20250315-0042'


def test_it_code_passes_through_existing_codes():
    assert format_ticket_code('20240101-0007', AFTERNOON_LOCAL) == '20240101-0007'


def test_maintenance_code_from_plain_number():
    assert format_maintenance_ticket_code(7, AFTERNOON_LOCAL) == 'MANT-150325-0007'


def test_maintenance_code_keeps_strict_shape():
    assert format_maintenance_ticket_code('MANT-010224-0042', AFTERNOON_LOCAL) == 'MANT-010224-0042'


def test_maintenance_code_converts_legacy_eight_digit_date():
    assert format_maintenance_ticket_code('mant-20240201-0012', AFTERNOON_LOCAL) == 'MANT-010224-0012'


def test_maintenance_code_trims_long_sequence():
    assert format_maintenance_ticket_code('MANT-010224-00042', AFTERNOON_LOCAL) == 'MANT-010224-0042'


@pytest.mark.parametrize('value, expected', [
    ('MANT-010224-0042', 42),
    ('MANT-20240201-0012', 12),
    ('17', 17),
    ('not-a-code', None),
])
def test_extract_maintenance_sequence(value, expected):
    assert extract_maintenance_ticket_sequence(value) == expected


@pytest.mark.parametrize('category, expected', [
    ('Mantenimiento / Plomería', 'maintenance'),
    ('MTTO eléctrico', 'maintenance'),
    ('Building maintenance', 'maintenance'),
    ('Hardware / Laptop', 'it'),
    (None, 'it'),
])
def test_infer_service_area(category, expected):
    assert infer_service_area(category) == expected
