"""
Unit tests for the devices file loader.
"""
import pytest
import yaml

from modbus2mqtt.devices.device import DeviceConfig
from modbus2mqtt.devices.loader import DeviceConfigLoader
from tests.factories import DeviceEntryFactory


def write_devices(path, devices):
    path.write_text(yaml.safe_dump({"devices": devices}), encoding="utf-8")
    return path


class TestDeviceConfigLoader:

    def test_loads_devices(self, tmp_path):
        entries = DeviceEntryFactory.build_batch(3)
        path = write_devices(tmp_path / "devices.yaml", entries)

        devices = DeviceConfigLoader(path).load()

        assert [d.id for d in devices] == [e["id"] for e in entries]
        assert all(isinstance(d, DeviceConfig) for d in devices)

    def test_invalid_entry_is_skipped(self, tmp_path, caplog):
        entries = [
            {"id": "good", "model": "SDM120", "modbus_id": 1},
            {"id": "bad", "model": "SDM120"},
        ]
        path = write_devices(tmp_path / "devices.yaml", entries)

        devices = DeviceConfigLoader(path).load()

        assert [d.id for d in devices] == ["good"]
        assert "Failed to parse device" in caplog.text

    def test_duplicate_ids_are_skipped(self, tmp_path):
        entries = [
            {"id": "dup", "model": "SDM120", "modbus_id": 1},
            {"id": "dup", "model": "XY-MD02", "modbus_id": 2},
        ]
        path = write_devices(tmp_path / "devices.yaml", entries)

        devices = DeviceConfigLoader(path).load()

        assert len(devices) == 1
        assert devices[0].model == "SDM120"

    def test_empty_file(self, tmp_path):
        path = tmp_path / "devices.yaml"
        path.write_text("", encoding="utf-8")

        assert DeviceConfigLoader(path).load() == []

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            DeviceConfigLoader(tmp_path / "missing.yaml").load()
