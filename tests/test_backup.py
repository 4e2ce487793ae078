"""
Test suite for export functionality.

Tests snapshot generation, timestamp normalization, child collection
folding, failure handling and snapshot file writing.
"""

import json
from datetime import date
from unittest.mock import Mock

import pytest

from pos_backup_restore.backup.exporter import Exporter
from pos_backup_restore.backup.manager import BackupManager
from pos_backup_restore.config import BackupConfig, EXPORT_COLLECTIONS, SUPPORTED_VERSION
from pos_backup_restore.envelope import Envelope, export_filename, emergency_backup_filename
from pos_backup_restore.errors import FetchError, FormatError
from pos_backup_restore.utils.store import StoreAdapter
from pos_backup_restore.utils.temporal import is_iso_timestamp


class TestExporter:
    """Test snapshot generation."""

    @pytest.fixture
    def exporter(self, populated_store):
        return Exporter(populated_store)

    def test_generate_covers_every_collection_in_order(self, exporter):
        envelope = exporter.generate()

        assert list(envelope.data.keys()) == EXPORT_COLLECTIONS
        assert envelope.version == SUPPORTED_VERSION
        assert is_iso_timestamp(envelope.export_date)
        assert envelope.data["inventory_items"] == []

    def test_shift_with_payouts(self, exporter):
        envelope = exporter.generate()

        shift = envelope.data["shifts"][0]
        assert shift["id"] == "shift_1"
        payouts = shift["_payouts_subcollection"]
        assert len(payouts) == 2
        assert {p["id"] for p in payouts} == {"p1", "p2"}
        assert payouts[0]["timestamp"] == "2024-03-01T09:00:00.000Z"

    def test_timestamps_are_normalized(self, exporter):
        envelope = exporter.generate()

        shift = envelope.data["shifts"][0]
        assert shift["openingTime"] == "2024-03-01T09:00:00.000Z"
        assert shift["closingTime"] == "2024-03-01T22:15:30.250Z"

        sale = envelope.data["history"][0]
        assert sale["payment"]["paidAt"] == "2024-03-01T22:15:30.250Z"

    def test_reserved_key_omitted_without_children(self, store):
        store.seed("shifts", "shift_2", {"status": "open"})

        envelope = Exporter(store).generate()

        assert "_payouts_subcollection" not in envelope.data["shifts"][0]

    def test_id_comes_first_and_is_the_document_id(self, store):
        store.seed("menuItems", "m1", {"id": "stale", "name": "Tea"})

        record = Exporter(store).generate().data["menuItems"][0]

        assert list(record.keys())[0] == "id"
        assert record["id"] == "m1"

    def test_generate_is_read_only(self, populated_store):
        Exporter(populated_store).generate()

        assert all(event[0] == "read" for event in populated_store.events)

    def test_read_failure_aborts_export(self, populated_store):
        populated_store.fail_reads.add("history")

        with pytest.raises(FetchError, match="history"):
            Exporter(populated_store).generate()

    def test_child_read_failure_aborts_export(self, populated_store):
        populated_store.fail_reads.add("shifts/shift_1/payouts")

        with pytest.raises(FetchError) as exc_info:
            Exporter(populated_store).generate()

        assert exc_info.value.collection == "shifts/shift_1/payouts"

    def test_reserved_key_stored_as_field_is_rejected(self, store):
        store.seed("shifts", "shift_1", {"_payouts_subcollection": "oops"})

        with pytest.raises(FormatError, match="reserved"):
            Exporter(store).generate()

    def test_progress_messages(self, populated_store):
        messages = []

        Exporter(populated_store, collections=["history", "shifts"]).generate(messages.append)

        assert messages[0] == "Exporting collection: history..."
        assert messages[1] == "Exporting collection: shifts..."
        assert messages[-1].startswith("Export complete: 2 records")

    def test_with_mock_store(self):
        store = Mock(spec=StoreAdapter)
        store.read_all.return_value = []

        envelope = Exporter(store, collections=["tables"]).generate()

        store.read_all.assert_called_once_with("tables")
        assert envelope.data == {"tables": []}


class TestBackupManager:
    """Test snapshot file writing."""

    @pytest.fixture
    def manager(self, populated_store, tmp_path):
        config = BackupConfig(output_dir=tmp_path, app_prefix="nalli_nihari")
        return BackupManager(config, store=populated_store)

    def test_export_to_file(self, manager, tmp_path):
        path = manager.export_to_file()

        assert path.parent == tmp_path
        assert path.name.startswith("nalli_nihari_export_")
        assert path.suffix == ".json"

        payload = json.loads(path.read_text(encoding="utf-8"))
        assert payload["version"] == "1.0"
        assert payload["data"]["shifts"][0]["id"] == "shift_1"

    def test_existing_file_is_never_overwritten(self, manager):
        envelope = manager.generate()

        first = manager.write_emergency_backup(envelope)
        second = manager.write_emergency_backup(envelope)
        third = manager.write_emergency_backup(envelope)

        assert len({first, second, third}) == 3
        assert all(p.exists() for p in (first, second, third))
        assert "emergency_backup" in second.name

    def test_backup_stats(self, manager):
        manager.export_to_file()

        stats = manager.get_backup_stats()

        assert stats["total_records"] == 5
        assert stats["record_counts"]["shifts"] == 1
        assert stats["collections_with_children"] == ["shifts"]

    def test_deeply_nested_timestamps_survive_json(self, store, tmp_path):
        from datetime import datetime, timezone

        store.seed("recipes", "r1", {"meta": {"audit": {"at": datetime(2024, 1, 1, tzinfo=timezone.utc)}}})
        manager = BackupManager(BackupConfig(output_dir=tmp_path), store=store)

        path = manager.export_to_file()

        payload = json.loads(path.read_text(encoding="utf-8"))
        assert payload["data"]["recipes"][0]["meta"]["audit"]["at"] == "2024-01-01 00:00:00+00:00"


class TestFileNames:
    """Test snapshot file naming."""

    def test_export_filename(self):
        assert export_filename("pos", date(2024, 3, 1)) == "pos_export_2024-03-01.json"

    def test_emergency_backup_filename(self):
        assert emergency_backup_filename("pos", date(2024, 3, 1)) == "pos_emergency_backup_2024-03-01.json"


class TestEnvelope:
    """Test envelope parsing and validation."""

    def test_parse_valid(self):
        envelope = Envelope.parse('{"exportDate": "2024-03-01T00:00:00.000Z", "version": "1.0", "data": {"tables": []}}')

        assert envelope.version == "1.0"
        assert envelope.record_counts() == {"tables": 0}

    @pytest.mark.parametrize("text,message", [
        ("not json", "Invalid or corrupted"),
        ("[]", "not an object"),
        ('{"data": {}}', "missing version"),
        ('{"version": "2.0", "data": {}}', "Unsupported backup version"),
        ('{"version": "1.0"}', "missing data"),
        ('{"version": "1.0", "data": []}', "data is not an object"),
    ])
    def test_parse_rejects(self, text, message):
        with pytest.raises(FormatError, match=message):
            Envelope.parse(text)

    def test_to_json_round_trip(self):
        envelope = Envelope.create({"tables": [{"id": "t1", "status": "free"}]})

        parsed = Envelope.parse(envelope.to_json())

        assert parsed == envelope
        assert list(json.loads(envelope.to_json()).keys()) == ["exportDate", "version", "data"]
