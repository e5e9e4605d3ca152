"""Shared helpers for reading Brazilian bank exports.

Amounts come with an unknown mix of ``.`` and ``,`` separators, dates come
either day-first (``DD/MM/YYYY``) or OFX style (``YYYYMMDD[HHMMSS][tz]``).
OFX documents are handed to ofxparse after ``prepare_ofx`` normalises them.
"""
import calendar
import csv
import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation

NAN = Decimal("NaN")

MIN_PLAUSIBLE_YEAR = 1900
MAX_PLAUSIBLE_YEAR = 2100

BALANCE_MARKERS = ("saldo anterior", "saldo do dia", "saldo parcial")

SINGLE_INSTALLMENT = "Única"

_PLAIN_NUMBER = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)$")
_THOUSANDS_GROUPS = re.compile(r"^[+-]?\d{1,3}(\.\d{3})+$")
_OFX_TIMEZONE = re.compile(r"\[.*\]")
_OFX_RECORD = re.compile(
    r"<STMTTRN>(.*?)(?:</STMTTRN>|(?=<STMTTRN>|</BANKTRANLIST>|\Z))",
    re.IGNORECASE | re.DOTALL,
)
_OFX_RECORD_END = re.compile(r"</STMTTRN>", re.IGNORECASE)
_OFX_ROOT = re.compile(r"<OFX>", re.IGNORECASE)
_OFX_TIMEZONE_SUFFIX = re.compile(r"(?<=\d)\[[^\]]*\]")

OFX_SGML_HEADER = (
    "OFXHEADER:100\nDATA:OFXSGML\nVERSION:102\nSECURITY:NONE\nENCODING:USASCII\n"
    "CHARSET:1252\nCOMPRESSION:NONE\nOLDFILEUID:NONE\nNEWFILEUID:NONE\n\n"
)


def _to_decimal(text: str) -> Decimal:
    if not _PLAIN_NUMBER.match(text):
        return NAN
    try:
        return Decimal(text)
    except InvalidOperation:
        return NAN


def parse_brl_amount(raw) -> Decimal:
    """Parse a monetary string with ambiguous separators.

    Returns ``Decimal('NaN')`` instead of raising, so callers can skip the
    record. Examples::

        "1.234,56" -> 1234.56    "1234,56" -> 1234.56
        "1234.56"  -> 1234.56    "1.234"   -> 1234
        "0.500"    -> 0.5        "-10"     -> -10
        "5.500"    -> 5500       "-5.000"  -> -5000

    A lone dot followed by exactly three digits is a thousands separator
    unless the integer part is zero, whatever the sign. OFX amounts never
    come through here, see ``parse_ofx_amount``.
    """
    if raw is None:
        return NAN
    if isinstance(raw, (int, Decimal)):
        return Decimal(raw)
    text = str(raw).strip().replace("R$", "").replace(" ", "")
    if not text:
        return NAN

    if "," in text and "." in text:
        # 1.234,56: dots group thousands, the comma is the decimal point
        text = text.replace(".", "").replace(",", ".")
    elif "," in text:
        text = text.replace(",", ".")
    elif "." in text:
        integer, _, fraction = text.rpartition(".")
        if text.count(".") > 1:
            if not _THOUSANDS_GROUPS.match(text):
                return NAN
            text = text.replace(".", "")
        elif len(fraction) == 3 and integer.lstrip("+-") not in ("", "0"):
            # lone dot followed by three digits reads as a thousands group
            text = integer + fraction
    return _to_decimal(text)


def parse_brl_date(raw) -> str | None:
    """Convert DD/MM/YYYY (or DD/MM/YY) to ISO 8601, None when invalid."""
    if not raw:
        return None
    parts = str(raw).strip().split("/")
    if len(parts) != 3:
        return None
    day_s, month_s, year_s = (p.strip() for p in parts)
    if not (day_s.isdigit() and month_s.isdigit() and year_s.isdigit()):
        return None
    day, month, year = int(day_s), int(month_s), int(year_s)
    if not (1 <= day <= 31 and 1 <= month <= 12):
        return None
    if len(year_s) == 2:
        year += 2000
    elif len(year_s) != 4:
        return None
    try:
        return date(year, month, day).isoformat()
    except ValueError:
        return None


def parse_iso_date(raw) -> str | None:
    if not raw:
        return None
    try:
        return datetime.strptime(str(raw).strip(), "%Y-%m-%d").date().isoformat()
    except ValueError:
        return None


def _ofx_date_digits(raw) -> str | None:
    if not raw:
        return None
    cleaned = _OFX_TIMEZONE.sub("", str(raw)).strip()
    digits = cleaned[:8]
    if len(digits) < 8 or not digits.isdigit():
        return None
    return digits


def ofx_posting_year(raw) -> int | None:
    digits = _ofx_date_digits(raw)
    return int(digits[:4]) if digits else None


def is_plausible_year(year: int) -> bool:
    return MIN_PLAUSIBLE_YEAR <= year <= MAX_PLAUSIBLE_YEAR


def parse_ofx_date(raw) -> str | None:
    """Convert YYYYMMDD[HHMMSS][-3:BRT] to ISO 8601, None when invalid."""
    digits = _ofx_date_digits(raw)
    if digits is None:
        return None
    try:
        return date(int(digits[:4]), int(digits[4:6]), int(digits[6:8])).isoformat()
    except ValueError:
        return None


def add_months(iso_date: str, months: int) -> str:
    """Shift an ISO date by whole months, clamping to the month's last day."""
    d = date.fromisoformat(iso_date)
    month_index = d.month - 1 + months
    year = d.year + month_index // 12
    month = month_index % 12 + 1
    day = min(d.day, calendar.monthrange(year, month)[1])
    return date(year, month, day).isoformat()


def parse_installment(marker) -> tuple[int, int] | None:
    """Read a "current/total" installment marker such as "3/12"."""
    if not marker:
        return None
    text = str(marker).strip()
    if text.lower() == SINGLE_INSTALLMENT.lower():
        return None
    parts = text.split("/")
    if len(parts) != 2:
        return None
    current, total = (p.strip() for p in parts)
    if not (current.isdigit() and total.isdigit()):
        return None
    return int(current), int(total)


def project_installment(purchase_date: str, marker) -> str:
    """Move a card purchase date forward to the month of its installment."""
    installment = parse_installment(marker)
    if installment is None or installment[0] <= 1:
        return purchase_date
    return add_months(purchase_date, installment[0] - 1)


def is_balance_artifact(*texts) -> bool:
    for text in texts:
        if text and any(marker in text.lower() for marker in BALANCE_MARKERS):
            return True
    return False


def split_fields(line: str, delimiter: str = ",") -> list[str]:
    """Split one delimited line, honouring quoted fields."""
    row = next(csv.reader([line], delimiter=delimiter, skipinitialspace=True), [])
    return [cell.strip() for cell in row]


def strip_ofx_header(content: str) -> str:
    match = _OFX_ROOT.search(content)
    return content[match.start():] if match else content


def close_ofx_records(body: str) -> str:
    """Give every STMTTRN record a closing tag when the bank left them all out.

    ofxparse closes SGML tags that never appear closed right after their
    opening tag, which would leave unclosed records empty.
    """
    if _OFX_RECORD_END.search(body):
        return body
    return _OFX_RECORD.sub(lambda match: f"<STMTTRN>{match.group(1)}</STMTTRN>", body)


def prepare_ofx(content: str) -> bytes:
    """Rebuild an already decoded statement as the cp1252 OFX 1.x that ofxparse reads.

    The bank's own header (SGML or XML prolog) is swapped for one declaring
    cp1252, and timezone suffixes are dropped so posted dates keep the day
    the bank printed.
    """
    body = _OFX_TIMEZONE_SUFFIX.sub("", close_ofx_records(strip_ofx_header(content)))
    return (OFX_SGML_HEADER + body).encode("cp1252", errors="xmlcharrefreplace")


def parse_ofx_amount(raw) -> Decimal:
    """OFX amounts use a single decimal point, written as ``.`` or ``,``."""
    if raw is None:
        return NAN
    if isinstance(raw, (int, Decimal)):
        return Decimal(raw)
    text = str(raw).strip().replace(" ", "")
    if "," in text and "." in text:
        decimal_point = "," if text.rfind(",") > text.rfind(".") else "."
        grouping = "." if decimal_point == "," else ","
        text = text.replace(grouping, "").replace(decimal_point, ".")
    elif "," in text:
        text = text.replace(",", ".")
    return _to_decimal(text)
