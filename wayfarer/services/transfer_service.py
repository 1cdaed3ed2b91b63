"""
Wayfarer Backend - Spot Import/Export Pipeline
================================================

What:  Serializes every tourist spot to JSON, CSV or XML, and loads spots
       back from any of the three.
Why:   Bulk seeding and backups by administrators.
How:   One codec pair per format, all producing or consuming the same flat
       record shape, so the format only changes the text encoding.

Export record (fixed field order):
    id, name, description, city, state, country, lat, lng, address,
    averageRating, createdAt (ISO-8601)

Import flow (per record, never aborting the batch):
    raw record ──▶ coerce lat/lng to float ──▶ SpotCreate validation
               ──▶ INSERT + COMMIT          ──▶ successful += 1
    any failure ──▶ rollback of THAT record only, errors.append(...)

Only a file that cannot be parsed at all (bad JSON/XML, missing CSV
header, unknown format) fails the request with 400.
"""

import csv
import io
import json
import logging
import math
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Callable, Dict, List

from defusedxml import DefusedXmlException
from defusedxml import ElementTree as SafeET
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from wayfarer.exceptions import DatabaseError, ValidationError
from wayfarer.models.spot import TouristSpot
from wayfarer.schemas.spot import SpotCreate
from wayfarer.schemas.transfer import ImportFailure, ImportResults
from wayfarer.security import AuthenticatedUser

logger = logging.getLogger(__name__)

EXPORT_FIELDS = (
    "id",
    "name",
    "description",
    "city",
    "state",
    "country",
    "lat",
    "lng",
    "address",
    "averageRating",
    "createdAt",
)

COORDINATE_FIELDS = ("lat", "lng")

XML_ROOT = "touristSpots"
XML_RECORD = "spot"
XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>\n'

FORMAT_ERROR = "Invalid format. Use json, csv, or xml"

Record = Dict[str, Any]


@dataclass(frozen=True)
class ExportPayload:
    content: str
    media_type: str
    filename: str


def _iso(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def spot_to_record(spot: TouristSpot) -> Record:
    return {
        "id": str(spot.id),
        "name": spot.name,
        "description": spot.description,
        "city": spot.city,
        "state": spot.state,
        "country": spot.country,
        "lat": float(spot.lat),
        "lng": float(spot.lng),
        "address": spot.address,
        "averageRating": float(spot.average_rating or 0),
        "createdAt": _iso(spot.created_at),
    }


# ══════════════════════════════════════════════════════════════════════════
# Encoders
# ══════════════════════════════════════════════════════════════════════════

def encode_json(records: List[Record]) -> str:
    return json.dumps(records, ensure_ascii=False, indent=2)


def encode_csv(records: List[Record]) -> str:
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=EXPORT_FIELDS)
    writer.writeheader()
    writer.writerows(records)
    return buffer.getvalue()


def encode_xml(records: List[Record]) -> str:
    root = ET.Element(XML_ROOT)
    for record in records:
        node = ET.SubElement(root, XML_RECORD)
        for field in EXPORT_FIELDS:
            ET.SubElement(node, field).text = str(record[field])
    ET.indent(root)
    return XML_DECLARATION + ET.tostring(root, encoding="unicode") + "\n"


# ══════════════════════════════════════════════════════════════════════════
# Decoders
# ══════════════════════════════════════════════════════════════════════════

def decode_json(text: str) -> List[Any]:
    """A JSON array of objects, or a single object."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValidationError(message=f"Invalid JSON file: {e.msg}", field="file")
    if isinstance(data, dict):
        return [data]
    if isinstance(data, list):
        return data
    raise ValidationError(message="JSON file must contain an object or an array", field="file")


def decode_csv(text: str) -> List[Any]:
    """Header row plus one record per line. Blank lines are skipped, values trimmed."""
    reader = csv.DictReader(io.StringIO(text))
    if not reader.fieldnames:
        raise ValidationError(message="CSV file has no header row", field="file")

    records = []
    try:
        for row in reader:
            record = {
                key.strip(): (value or "").strip()
                for key, value in row.items()
                if key is not None
            }
            if any(record.values()):
                records.append(record)
    except csv.Error as e:
        raise ValidationError(message=f"Invalid CSV file: {e}", field="file")
    return records


def decode_xml(text: str) -> List[Any]:
    """
    <touristSpots><spot><name>..</name>...</spot>...</touristSpots>

    Parsed with defusedxml: entity declarations and external references in an
    uploaded file are rejected instead of expanded.
    """
    try:
        root = SafeET.fromstring(text)
    except (ET.ParseError, DefusedXmlException) as e:
        raise ValidationError(message=f"Invalid XML file: {e}", field="file")
    if root.tag != XML_ROOT:
        raise ValidationError(
            message=f"XML root element must be <{XML_ROOT}>",
            field="file",
            context={"root": root.tag},
        )
    return [
        {child.tag: (child.text or "").strip() for child in node}
        for node in root.findall(XML_RECORD)
    ]


ENCODERS: Dict[str, tuple] = {
    "json": (encode_json, "application/json"),
    "csv": (encode_csv, "text/csv"),
    "xml": (encode_xml, "application/xml"),
}

DECODERS: Dict[str, Callable[[str], List[Any]]] = {
    "json": decode_json,
    "csv": decode_csv,
    "xml": decode_xml,
}


def normalize_format(fmt: str) -> str:
    normalized = (fmt or "json").strip().lower()
    if normalized not in ENCODERS:
        raise ValidationError(message=FORMAT_ERROR, field="format", context={"format": fmt})
    return normalized


# ══════════════════════════════════════════════════════════════════════════
# Record validation
# ══════════════════════════════════════════════════════════════════════════

def _record_name(record: Any) -> str:
    if isinstance(record, dict):
        name = record.get("name")
        if isinstance(name, str) and name.strip():
            return name.strip()
    return "Unknown"


def _format_validation_error(error: PydanticValidationError) -> str:
    parts = []
    for issue in error.errors():
        field = ".".join(str(loc) for loc in issue["loc"])
        parts.append(f"{field}: {issue['msg']}" if field else issue["msg"])
    return "; ".join(parts)


def coerce_record(record: Any) -> SpotCreate:
    """
    Turn one decoded record into a validated SpotCreate.

    lat/lng arriving as text are converted to float first; text that is not
    a finite number fails the record.

    Raises:
        ValueError with a human-readable message.
    """
    if not isinstance(record, dict):
        raise ValueError("Record must be an object")

    candidate = dict(record)
    for field in COORDINATE_FIELDS:
        value = candidate.get(field)
        if isinstance(value, str):
            try:
                value = float(value.strip())
            except ValueError:
                raise ValueError(f"{field}: must be a number, got '{value}'")
            candidate[field] = value
        if isinstance(value, float) and not math.isfinite(value):
            raise ValueError(f"{field}: must be a finite number")

    try:
        return SpotCreate.model_validate(candidate)
    except PydanticValidationError as e:
        raise ValueError(_format_validation_error(e))


# ══════════════════════════════════════════════════════════════════════════
# Service
# ══════════════════════════════════════════════════════════════════════════

class TransferService:

    async def export_spots(self, db: AsyncSession, fmt: str) -> ExportPayload:
        fmt = normalize_format(fmt)
        try:
            result = await db.execute(
                select(TouristSpot).order_by(TouristSpot.created_at, TouristSpot.id)
            )
            spots = result.scalars().all()
        except SQLAlchemyError as e:
            logger.error("Database error exporting spots: %s", str(e))
            raise DatabaseError(message="Failed to export spots")

        encode, media_type = ENCODERS[fmt]
        records = [spot_to_record(spot) for spot in spots]
        logger.info("Exporting %d spots as %s", len(records), fmt)
        return ExportPayload(
            content=encode(records),
            media_type=media_type,
            filename=f"tourist-spots.{fmt}",
        )

    async def import_spots(
        self,
        db: AsyncSession,
        user: AuthenticatedUser,
        content: bytes,
        fmt: str,
    ) -> ImportResults:
        fmt = normalize_format(fmt)
        try:
            text = content.decode("utf-8-sig")
        except UnicodeDecodeError:
            raise ValidationError(message="Import file must be UTF-8 encoded", field="file")

        records = DECODERS[fmt](text)
        results = ImportResults()

        for position, record in enumerate(records, start=1):
            name = _record_name(record)
            try:
                data = coerce_record(record)
            except ValueError as e:
                results.failed += 1
                results.errors.append(ImportFailure(record=position, spot=name, error=str(e)))
                continue

            values = data.model_dump()
            for field in COORDINATE_FIELDS:
                values[field] = Decimal(str(values[field]))
            try:
                db.add(TouristSpot(**values, created_by=user.id))
                await db.commit()
            except SQLAlchemyError as e:
                await db.rollback()
                logger.warning("Import record %d (%s) failed to insert: %s", position, name, str(e))
                results.failed += 1
                results.errors.append(
                    ImportFailure(record=position, spot=name, error="Failed to save record")
                )
                continue

            results.successful += 1

        logger.info(
            "Import by user %s (%s): %d successful, %d failed",
            user.id,
            fmt,
            results.successful,
            results.failed,
        )
        return results


transfer_service = TransferService()
