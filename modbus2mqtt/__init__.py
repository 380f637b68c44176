"""
modbus2mqtt - Modbus to MQTT bridge.

Polls Modbus devices according to their model's register descriptor
and publishes one JSON document per device to MQTT.
"""
from .config import Modbus2MqttSettings, get_settings
from .bridge import Bridge

__all__ = [
    "Modbus2MqttSettings",
    "get_settings",
    "Bridge",
]

__version__ = "0.1.0"
