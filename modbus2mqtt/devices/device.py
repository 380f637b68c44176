"""
Device definitions.

A Device couples a configured Modbus unit with the register
descriptor of its model.
"""
from dataclasses import dataclass
from typing import Any, Dict, Mapping

from ..descriptors.definitions import RegisterDescriptor
from ..descriptors.registry import DescriptorRegistry
from ..exceptions import ConfigError, UnknownModelError


@dataclass(frozen=True)
class DeviceConfig:
    """Device entry as read from the devices file."""
    id: str
    model: str
    unit_id: int

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DeviceConfig":
        """
        Parse a device entry.

        The unit id may be given as ``modbus_id`` or ``unit_id``.

        Raises:
            ConfigError: If a required key is missing or malformed.
        """
        device_id = data.get("id")
        if not device_id:
            raise ConfigError("Device 'id' is required")

        model = data.get("model")
        if not model:
            raise ConfigError(f"Device {device_id} has no 'model'")

        unit_id = data.get("modbus_id", data.get("unit_id"))
        if unit_id is None:
            raise ConfigError(f"Device {device_id} has no 'modbus_id'")

        try:
            unit_id = int(unit_id)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Device {device_id} has invalid modbus_id: {unit_id}") from e

        return cls(id=str(device_id), model=str(model), unit_id=unit_id)

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "model": self.model, "modbus_id": self.unit_id}


@dataclass(frozen=True)
class Device:
    """A pollable device with its resolved register descriptor."""
    id: str
    model: str
    unit_id: int
    descriptor: RegisterDescriptor

    @classmethod
    def create(cls, config: DeviceConfig, registry: DescriptorRegistry) -> "Device":
        """
        Resolve a device's descriptor from the registry.

        Raises:
            UnknownModelError: If the registry has no descriptor for the model.
        """
        descriptor = registry.lookup_by_model(config.model)
        if descriptor is None:
            raise UnknownModelError(config.id, config.model)

        return cls(
            id=config.id,
            model=config.model,
            unit_id=config.unit_id,
            descriptor=descriptor,
        )
