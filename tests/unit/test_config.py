"""
Unit tests for bridge settings.
"""
from pathlib import Path

from modbus2mqtt.config import Modbus2MqttSettings, ModbusSettings, MqttSettings, PollingSettings


def test_defaults():
    settings = Modbus2MqttSettings()

    assert settings.mqtt.base_topic == "modbus2mqtt"
    assert settings.mqtt.server == "mqtt://localhost:1883"
    assert settings.polling.interval_ms == 10000
    assert settings.polling.interval == 10.0
    assert settings.modbus.transport == "tcp"


def test_environment_prefixes(monkeypatch):
    monkeypatch.setenv("MQTT_BASE_TOPIC", "site1")
    monkeypatch.setenv("MODBUS_TRANSPORT", "rtu")
    monkeypatch.setenv("MODBUS_SERIAL_PORT", "/dev/ttyAMA0")
    monkeypatch.setenv("POLLING_INTERVAL_MS", "2500")

    assert MqttSettings().base_topic == "site1"
    assert ModbusSettings().serial_port == "/dev/ttyAMA0"
    assert ModbusSettings().transport == "rtu"
    assert PollingSettings().interval == 2.5


def test_devices_file_is_relative_to_working_directory(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)

    devices_file = Modbus2MqttSettings().devices_file

    assert devices_file == Path("config") / "devices.yaml"
    assert not devices_file.is_absolute()


def test_devices_file_from_environment(monkeypatch):
    monkeypatch.setenv("DEVICES_FILE", "/etc/modbus2mqtt/devices.yaml")

    assert Modbus2MqttSettings().devices_file == Path("/etc/modbus2mqtt/devices.yaml")
