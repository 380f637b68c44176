"""
MQTT connectivity: client wrapper and connection supervisor.
"""
from .client import ConnectionStatus, MqttClient
from .supervisor import ConnectionState, ConnectionSupervisor

__all__ = [
    "ConnectionStatus",
    "MqttClient",
    "ConnectionState",
    "ConnectionSupervisor",
]
