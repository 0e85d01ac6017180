"""SendGrid Client - Contact Import.

Reads contact rows from a spreadsheet and returns typed ``Contact``
objects ready for ``MailClient.store_contacts``.

Supported data sources
~~~~~~~~~~~~~~~~~~~~~~
* **.xlsx workbook** -- first sheet, or a named one.
* **.csv file** -- UTF-8, header row first.
* **Bytes buffer** -- ``io.BytesIO`` holding an ``.xlsx`` workbook.

Columns are matched by *header text*, case-insensitively:

+-------------------+---------------------------------------------+
| Field             | Accepted headers                            |
+===================+=============================================+
| ``email``         | Email, Email Address, E-mail                |
| ``id``            | ID, External ID, Ext ID                     |
| ``first_name``    | First Name, Given Name                      |
| ``last_name``     | Last Name, Surname, Family Name             |
| ``name``          | Name, Full Name (split when first/last are  |
|                   | absent)                                     |
+-------------------+---------------------------------------------+

Every other non-empty column becomes a custom field keyed on its header.

Usage::

    from sendgrid_client.contact_loader import load_contacts

    result = load_contacts("contacts.xlsx")
    client.store_contacts(result.contacts, ["list-123"])
"""

from __future__ import annotations

import csv
import datetime
import io
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, Any, Iterable, Optional, Union

import openpyxl
from openpyxl.workbook import Workbook

from .models import Contact, split_name

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_CONTACT_HEADERS: dict[str, list[str]] = {
    "email":      ["Email", "Email Address", "E-mail"],
    "id":         ["ID", "External ID", "Ext ID"],
    "first_name": ["First Name", "Given Name"],
    "last_name":  ["Last Name", "Surname", "Family Name"],
    "name":       ["Name", "Full Name"],
}

# Cell values that should be treated as null / unknown.
_NULL_SIGNALS: set[str | None] = {"", "#N/A", "N/A", "#REF!", None}


# ---------------------------------------------------------------------------
# Result container
# ---------------------------------------------------------------------------

@dataclass
class ContactLoadResult:
    """Aggregated output from :func:`load_contacts`."""

    contacts: list[Contact] = field(default_factory=list)

    # Metadata
    source_file: str | None = None
    sheet_used: str | None = None
    total_rows_scanned: int = 0
    rows_skipped: int = 0
    warnings: list[str] = field(default_factory=list)

    @property
    def emails(self) -> list[str]:
        return [c.email for c in self.contacts if c.email]

    def summary(self) -> str:
        """Return a human-readable summary string."""
        lines = [
            f"Contact import: {len(self.contacts)} contacts",
            f"  Source      : {self.source_file or '(bytes buffer)'}",
            f"  Sheet       : {self.sheet_used or '-'}",
            f"  Rows scanned: {self.total_rows_scanned}",
            f"  Skipped     : {self.rows_skipped}",
        ]
        if self.warnings:
            lines.append(f"  Warnings ({len(self.warnings)}):")
            lines.extend(f"    - {w}" for w in self.warnings[:20])
            if len(self.warnings) > 20:
                lines.append(f"    ... and {len(self.warnings) - 20} more")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def load_contacts(
    source: Union[str, Path, IO[bytes]],
    *,
    sheet: str | None = None,
) -> ContactLoadResult:
    """Load contacts from an ``.xlsx`` or ``.csv`` source.

    Parameters
    ----------
    source:
        File path (``str`` or ``Path``) or a readable bytes buffer
        holding an ``.xlsx`` workbook.
    sheet:
        Worksheet name.  When *None* the first sheet is used.  Ignored
        for CSV files.

    Returns
    -------
    ContactLoadResult
        Parsed contacts plus row counts and warnings.
    """
    result = ContactLoadResult()

    if isinstance(source, (str, Path)):
        path = Path(source)
        if not path.exists():
            raise FileNotFoundError(f"Contact file not found: {path}")
        result.source_file = str(path)
        if path.suffix.lower() == ".csv":
            logger.info("Reading CSV contacts: %s", path)
            with path.open("r", newline="", encoding="utf-8-sig") as fh:
                rows = [list(r) for r in csv.reader(fh)]
            _parse_rows(rows, result)
            return result

    wb = _open_workbook(source)
    try:
        if sheet:
            if sheet not in wb.sheetnames:
                raise ValueError(f"Sheet '{sheet}' not found.  Available: {wb.sheetnames}")
            ws = wb[sheet]
        else:
            ws = wb.worksheets[0]
        result.sheet_used = ws.title
        rows = [list(r) for r in ws.iter_rows(values_only=True)]
    finally:
        wb.close()

    _parse_rows(rows, result)
    return result


# ---------------------------------------------------------------------------
# Workbook opening
# ---------------------------------------------------------------------------

def _open_workbook(source: Union[str, Path, IO[bytes]]) -> Workbook:
    """Open an openpyxl Workbook from a file path or bytes buffer."""
    if isinstance(source, (str, Path)):
        logger.info("Opening XLSX file: %s", source)
        return openpyxl.load_workbook(Path(source), data_only=True, read_only=True)

    logger.info("Opening XLSX from bytes buffer")
    if isinstance(source, (bytes, bytearray)):
        source = io.BytesIO(source)
    return openpyxl.load_workbook(source, data_only=True, read_only=True)


# ---------------------------------------------------------------------------
# Row parsing
# ---------------------------------------------------------------------------

def _parse_rows(rows: list[list[Any]], result: ContactLoadResult) -> None:
    """Turn a header row plus data rows into contacts on ``result``."""
    if not rows:
        result.warnings.append("Source is empty -- no header row")
        return

    headers = [_clean_str(h) for h in rows[0]]
    header_map = _build_header_map(headers, _CONTACT_HEADERS)

    if "email" not in header_map:
        raise ValueError(f"Required column 'Email' not found.  Header row: {headers}")

    known = set(header_map.values())
    extra_columns = [
        (idx, name) for idx, name in enumerate(headers) if idx not in known and name
    ]

    for row_num, row in enumerate(rows[1:], start=2):
        result.total_rows_scanned += 1
        if all(_clean_str(v) == "" for v in row):
            result.rows_skipped += 1
            continue

        email = _clean_str(_cell(row, header_map, "email"))
        if not email:
            result.rows_skipped += 1
            result.warnings.append(f"Row {row_num}: no email address -- skipped")
            continue

        first = _clean_str(_cell(row, header_map, "first_name"))
        last = _clean_str(_cell(row, header_map, "last_name"))
        if not first and not last:
            full = _clean_str(_cell(row, header_map, "name"))
            if full:
                first, last = split_name(full)

        custom: dict[str, Union[str, int, float, bool]] = {}
        for idx, name in extra_columns:
            val = row[idx] if idx < len(row) else None
            if _clean_str(val):
                custom[name] = _field_value(val)

        result.contacts.append(Contact(
            id=_clean_str(_cell(row, header_map, "id")) or None,
            email=email,
            first_name=first or None,
            last_name=last or None,
            custom_fields=custom,
        ))

    logger.info(
        "Parsed %d contacts (%d rows scanned, %d skipped)",
        len(result.contacts), result.total_rows_scanned, result.rows_skipped,
    )


def _build_header_map(
    headers: Iterable[str],
    header_spec: dict[str, list[str]],
) -> dict[str, int]:
    """Map logical field names to 0-based column indices."""
    header_map: dict[str, int] = {}
    lowered = [h.lower() for h in headers]

    for logical_name, aliases in header_spec.items():
        for alias in aliases:
            if alias.lower() in lowered:
                header_map[logical_name] = lowered.index(alias.lower())
                break

    logger.debug("Header map (%d/%d): %s", len(header_map), len(header_spec), list(header_map))
    return header_map


def _cell(row: list[Any], header_map: dict[str, int], field_name: str) -> Optional[Any]:
    idx = header_map.get(field_name)
    if idx is None or idx >= len(row):
        return None
    return row[idx]


def _clean_str(val) -> str:
    """Convert a cell value to a stripped string.  None becomes ``""``."""
    if val is None:
        return ""
    s = str(val).strip()
    return "" if s in _NULL_SIGNALS else s


def _field_value(val: Any) -> Union[str, int, float, bool]:
    """Coerce a cell value to something the JSON payload can carry.

    Dates become ISO strings; anything else that is not a JSON scalar is
    stringified.
    """
    if isinstance(val, str):
        return val.strip()
    if isinstance(val, (bool, int, float)):
        return val
    if isinstance(val, (datetime.date, datetime.time)):
        return val.isoformat()
    return str(val)
