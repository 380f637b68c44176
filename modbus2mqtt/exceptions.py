"""
Bridge exceptions.

All errors raised inside the bridge derive from Modbus2MqttError so callers
can catch them in one place.
"""
from typing import Any, Dict, Optional


class Modbus2MqttError(Exception):
    """Base exception for all bridge errors."""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging or bridge responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


class ConfigError(Modbus2MqttError):
    """Raised when configuration is missing or malformed."""

    def __init__(self, message: str, source: Optional[str] = None):
        self.source = source
        super().__init__(
            message=message,
            code="CONFIG_ERROR",
            details={"source": source},
        )


class UnknownModelError(Modbus2MqttError):
    """Raised when a device declares a model the registry does not know."""

    def __init__(self, device_id: str, model: str):
        self.device_id = device_id
        self.model = model
        super().__init__(
            message=f"Device {device_id} has unknown model: {model}",
            code="UNKNOWN_MODEL",
            details={"device_id": device_id, "model": model},
        )


class TransportError(Modbus2MqttError):
    """Raised by a Modbus session when a request fails."""

    def __init__(
        self,
        message: str,
        unit_id: Optional[int] = None,
        address: Optional[int] = None,
    ):
        self.unit_id = unit_id
        self.address = address
        super().__init__(
            message=message,
            code="TRANSPORT_ERROR",
            details={"unit_id": unit_id, "address": address},
        )


class SessionAddressingError(Modbus2MqttError):
    """Raised when the session cannot be addressed to a device's unit id."""

    def __init__(self, device_id: str, unit_id: int, reason: str):
        self.device_id = device_id
        self.unit_id = unit_id
        super().__init__(
            message=f"Cannot address unit {unit_id} for device {device_id}: {reason}",
            code="SESSION_ADDRESSING",
            details={"device_id": device_id, "unit_id": unit_id},
        )
