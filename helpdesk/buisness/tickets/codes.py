"""
Ticket display codes and service-area inference.

IT tickets display as YYYYMMDD-NNNN and maintenance tickets as
MANT-DDMMYY-NNNN, both dated in local (Mexico City) time. Imported
maintenance numbers may arrive in older shapes and are normalised here.
"""

import re
from datetime import datetime
from typing import Optional, Union

from helpdesk.utils.timezones import to_local, utcnow

_IT_CODE = re.compile(r'^\d{8}-\d{4}$')
_MANT_STRICT = re.compile(r'^MANT-\d{6}-\d{4}$')
_MANT_LEGACY_8 = re.compile(r'^MANT-(\d{8})-(\d{4,})$')
_MANT_LEGACY_6 = re.compile(r'^MANT-(\d{6})-(\d{4,})$')
_MANT_ANY = re.compile(r'^MANT-(?:\d{6}|\d{8})-(\d{4,})$')

MAINTENANCE_KEYWORDS = ('mantenimiento', 'mtto', 'maintenance')


def pad4(value: Union[str, int]) -> str:
    """Keep the digits, left-pad to four and keep the last four."""
    digits = re.sub(r'\D', '', str(value))
    return digits.rjust(4, '0')[-4:]


def _normalize(value) -> str:
    return str('' if value is None else value).strip().upper()


def format_ticket_code(ticket_number, created_at: Optional[datetime]) -> str:
    raw = _normalize(ticket_number)
    if _IT_CODE.match(raw):
        return raw

    local = to_local(created_at or utcnow())
    return f"{local:%Y%m%d}-{pad4(raw)}"


def format_maintenance_ticket_code(ticket_number, created_at: Optional[datetime]) -> str:
    raw = _normalize(ticket_number)

    if _MANT_STRICT.match(raw):
        return raw

    legacy8 = _MANT_LEGACY_8.match(raw)
    if legacy8:
        yyyymmdd, seq = legacy8.groups()
        return f"MANT-{yyyymmdd[6:8]}{yyyymmdd[4:6]}{yyyymmdd[2:4]}-{pad4(seq)}"

    legacy6 = _MANT_LEGACY_6.match(raw)
    if legacy6:
        ddmmyy, seq = legacy6.groups()
        return f"MANT-{ddmmyy}-{pad4(seq)}"

    local = to_local(created_at or utcnow())
    return f"MANT-{local:%d%m%y}-{pad4(raw)}"


def extract_maintenance_ticket_sequence(ticket_number) -> Optional[int]:
    """Sequence number embedded in a maintenance code or plain number, else None."""
    raw = _normalize(ticket_number)
    match = _MANT_ANY.match(raw)
    if match:
        return int(pad4(match.group(1)))
    if raw.isdigit():
        return int(raw)
    return None


def infer_service_area(category_path: Optional[str]) -> str:
    normalized = (category_path or '').lower()
    if any(keyword in normalized for keyword in MAINTENANCE_KEYWORDS):
        return 'maintenance'
    return 'it'


def ticket_display_code(ticket) -> str:
    if ticket.service_area == 'maintenance':
        return format_maintenance_ticket_code(ticket.ticket_number, ticket.created_at)
    return format_ticket_code(ticket.ticket_number, ticket.created_at)
