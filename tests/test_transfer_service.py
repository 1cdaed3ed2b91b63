"""
Wayfarer Backend - Import/Export Tests
========================================

Test Strategy:
    ✅ Per-record import: one bad record never aborts the batch
    ✅ Export → import round trip for every format
    ✅ Unparseable files and unknown formats are rejected with 400
"""

import csv
import io
import json
import xml.etree.ElementTree as ET

import pytest
from sqlalchemy import func, select

from wayfarer.exceptions import ValidationError
from wayfarer.models import TouristSpot
from wayfarer.services.transfer_service import (
    EXPORT_FIELDS,
    coerce_record,
    decode_csv,
    decode_xml,
    normalize_format,
    transfer_service,
)


def _record(name: str, lat=10.5, lng=20.25) -> dict:
    return {
        "name": name,
        "description": f"{name} description",
        "city": "Lisbon",
        "state": "Lisboa",
        "country": "Portugal",
        "lat": lat,
        "lng": lng,
        "address": "Rua Augusta 1",
    }


async def _spot_names(session_factory):
    async with session_factory() as session:
        result = await session.execute(select(TouristSpot.name).order_by(TouristSpot.name))
        return list(result.scalars().all())


class TestImport:

    async def test_bad_latitude_fails_only_that_record(self, session_factory, admin):
        payload = json.dumps([_record("Belem Tower"), _record("Nowhere", lat=200), _record("Alfama")])

        async with session_factory() as session:
            results = await transfer_service.import_spots(session, admin, payload.encode(), "json")

        assert results.successful == 2
        assert results.failed == 1
        assert len(results.errors) == 1
        assert results.errors[0].record == 2
        assert results.errors[0].spot == "Nowhere"
        assert "lat" in results.errors[0].error
        assert await _spot_names(session_factory) == ["Alfama", "Belem Tower"]

    async def test_record_without_name_is_reported_as_unknown(self, session_factory, admin):
        record = _record("x")
        del record["name"]
        async with session_factory() as session:
            results = await transfer_service.import_spots(session, admin, json.dumps([record]).encode(), "json")

        assert results.failed == 1
        assert results.errors[0].spot == "Unknown"

    async def test_csv_import_coerces_text_coordinates(self, session_factory, admin):
        content = (
            "name,description,city,state,country,lat,lng,address\n"
            "Sintra,Palaces,Sintra,Lisboa,Portugal,38.7876,-9.3904,Largo Rainha D. Amelia\n"
            "\n"
            "Broken,Bad,Sintra,Lisboa,Portugal,north,-9.39,Nowhere\n"
        )
        async with session_factory() as session:
            results = await transfer_service.import_spots(session, admin, content.encode(), "csv")

        assert results.successful == 1
        assert results.failed == 1
        assert results.errors[0].record == 2
        assert "must be a number" in results.errors[0].error

    async def test_imported_spots_belong_to_importer(self, session_factory, admin):
        async with session_factory() as session:
            await transfer_service.import_spots(session, admin, json.dumps(_record("Solo")).encode(), "json")
            spot = (await session.execute(select(TouristSpot))).scalar_one()
        assert spot.created_by == admin.id
        assert float(spot.average_rating) == 0.0

    async def test_invalid_json_is_rejected(self, db_session, admin):
        with pytest.raises(ValidationError, match="Invalid JSON"):
            await transfer_service.import_spots(db_session, admin, b"[{not json", "json")

    async def test_non_utf8_is_rejected(self, db_session, admin):
        with pytest.raises(ValidationError, match="UTF-8"):
            await transfer_service.import_spots(db_session, admin, b"\xff\xfe\x00bad", "json")


class TestRoundTrip:

    @pytest.mark.parametrize("fmt", ["json", "csv", "xml"])
    async def test_export_then_import_recreates_spot(self, session_factory, spot, admin, spot_data, fmt):
        async with session_factory() as session:
            payload = await transfer_service.export_spots(session, fmt)

        async with session_factory() as session:
            results = await transfer_service.import_spots(session, admin, payload.content.encode(), fmt)
        assert results.successful == 1
        assert results.failed == 0

        async with session_factory() as session:
            rows = (
                await session.execute(select(TouristSpot).where(TouristSpot.name == spot_data["name"]))
            ).scalars().all()
        assert len(rows) == 2
        copy = next(row for row in rows if row.id != spot.id)
        for field in ("description", "city", "state", "country", "address"):
            assert getattr(copy, field) == spot_data[field]
        assert float(copy.lat) == pytest.approx(spot_data["lat"])
        assert float(copy.lng) == pytest.approx(spot_data["lng"])


class TestExport:

    async def test_json_export_fields(self, db_session, spot):
        payload = await transfer_service.export_spots(db_session, "json")

        records = json.loads(payload.content)
        assert payload.media_type == "application/json"
        assert payload.filename == "tourist-spots.json"
        assert list(records[0].keys()) == list(EXPORT_FIELDS)
        assert records[0]["id"] == str(spot.id)
        assert records[0]["averageRating"] == 0.0
        assert records[0]["createdAt"].endswith("Z")

    async def test_csv_export_has_header_row(self, db_session, spot):
        payload = await transfer_service.export_spots(db_session, "csv")

        rows = list(csv.reader(io.StringIO(payload.content)))
        assert rows[0] == list(EXPORT_FIELDS)
        assert len(rows) == 2
        assert payload.media_type == "text/csv"

    async def test_xml_export_structure(self, db_session, spot):
        payload = await transfer_service.export_spots(db_session, "xml")

        assert payload.content.startswith('<?xml version="1.0" encoding="UTF-8"?>')
        root = ET.fromstring(payload.content.split("\n", 1)[1])
        assert root.tag == "touristSpots"
        assert root.find("spot/name").text == spot.name

    async def test_empty_table_exports_empty_array(self, db_session):
        payload = await transfer_service.export_spots(db_session, "json")
        assert json.loads(payload.content) == []

    async def test_unknown_format_is_rejected(self, db_session):
        with pytest.raises(ValidationError, match="Invalid format"):
            await transfer_service.export_spots(db_session, "yaml")


class TestCodecs:

    def test_format_is_case_insensitive(self):
        assert normalize_format(" CSV ") == "csv"

    def test_csv_without_header_is_rejected(self):
        with pytest.raises(ValidationError, match="header"):
            decode_csv("")

    def test_xml_with_wrong_root_is_rejected(self):
        with pytest.raises(ValidationError, match="root element"):
            decode_xml("<places><spot><name>x</name></spot></places>")

    def test_malformed_xml_is_rejected(self):
        with pytest.raises(ValidationError, match="Invalid XML"):
            decode_xml("<touristSpots><spot>")

    def test_xml_entity_expansion_is_refused(self):
        document = (
            '<?xml version="1.0"?>'
            '<!DOCTYPE touristSpots [<!ENTITY lol "lol"><!ENTITY lol2 "&lol;&lol;&lol;&lol;">]>'
            "<touristSpots><spot><name>&lol2;</name></spot></touristSpots>"
        )
        with pytest.raises(ValidationError, match="Invalid XML"):
            decode_xml(document)

    def test_coerce_rejects_non_object(self):
        with pytest.raises(ValueError, match="must be an object"):
            coerce_record(["not", "a", "dict"])

    def test_coerce_rejects_infinite_coordinate(self):
        with pytest.raises(ValueError, match="finite"):
            coerce_record(_record("Inf", lat="inf"))
