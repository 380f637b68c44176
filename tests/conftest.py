"""
Shared pytest fixtures for modbus2mqtt tests.

Provides fixtures for:
- Simulated Modbus sessions
- Register descriptors and devices
- Mock MQTT client and connection supervisor
"""
from typing import Any, Dict
from unittest.mock import AsyncMock, MagicMock

import pytest

from modbus2mqtt.config import Modbus2MqttSettings, MqttSettings, PollingSettings
from modbus2mqtt.descriptors.definitions import FieldSpec, FunctionCode, RegisterDescriptor
from modbus2mqtt.descriptors.registry import DescriptorRegistry, default_registry
from modbus2mqtt.devices.device import Device
from modbus2mqtt.mqtt.client import ConnectionStatus
from modbus2mqtt.polling.assembler import ResultAssembler
from modbus2mqtt.polling.register_reader import RegisterReader
from tests.simulators import FakeModbusSession


# ============================================================================
# Modbus Fixtures
# ============================================================================

@pytest.fixture
def fake_session() -> FakeModbusSession:
    """Empty simulated Modbus bus."""
    return FakeModbusSession()


@pytest.fixture
def reader(fake_session) -> RegisterReader:
    return RegisterReader(fake_session, read_timeout=0.5)


@pytest.fixture
def assembler(fake_session, reader) -> ResultAssembler:
    return ResultAssembler(fake_session, reader)


# ============================================================================
# Descriptor Fixtures
# ============================================================================

@pytest.fixture
def temp_descriptor() -> RegisterDescriptor:
    """Single temperature field in tenths of a degree."""
    return RegisterDescriptor(
        model="TEMP-1",
        fields={
            "temp": FieldSpec(
                address=5,
                function_code=FunctionCode.READ_INPUT_REGISTERS,
                length=1,
                decode=lambda x, raw: x / 10,
            ),
        },
    )


@pytest.fixture
def registry(temp_descriptor) -> DescriptorRegistry:
    """Built-in models plus the test temperature model."""
    registry = default_registry()
    registry.register(temp_descriptor)
    return registry


@pytest.fixture
def temp_device(temp_descriptor) -> Device:
    return Device(id="greenhouse", model="TEMP-1", unit_id=7, descriptor=temp_descriptor)


# ============================================================================
# MQTT Fixtures
# ============================================================================

@pytest.fixture
def mock_mqtt_client():
    """
    Mock MQTT client reporting a healthy connection.

    Set ``reconnecting = True`` / ``connected = False`` to simulate an outage.
    """
    client = MagicMock()
    client.connect = AsyncMock()
    client.disconnect = AsyncMock()
    client.publish = AsyncMock(return_value=None)
    client.subscribe = MagicMock()
    client.add_message_handler = MagicMock()
    client.connected = True
    client.reconnecting = False
    client.status = ConnectionStatus.CONNECTED
    return client


@pytest.fixture
def mock_supervisor():
    """Mock connection supervisor accepting every publish."""
    supervisor = MagicMock()
    supervisor.publish = AsyncMock(return_value=True)
    return supervisor


# ============================================================================
# Settings Fixtures
# ============================================================================

@pytest.fixture
def settings(tmp_path) -> Modbus2MqttSettings:
    """Settings with a long poll interval and no devices file."""
    return Modbus2MqttSettings(
        devices_file=tmp_path / "devices.yaml",
        mqtt=MqttSettings(base_topic="modbus2mqtt", check_interval=60.0),
        polling=PollingSettings(interval_ms=60000, read_timeout=0.5),
    )


@pytest.fixture
def sample_device_entry() -> Dict[str, Any]:
    return {"id": "greenhouse", "model": "TEMP-1", "modbus_id": 7}
