"""
Configuration for the Modbus to MQTT bridge.

Provides settings for the MQTT connection, the Modbus transport,
and the polling loop. Values come from the environment or a .env file.
"""
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class MqttSettings(BaseSettings):
    """MQTT broker connection configuration."""

    model_config = SettingsConfigDict(
        env_prefix="MQTT_",
        env_file=".env",
        extra="ignore",
    )

    server: str = Field(default="mqtt://localhost:1883", description="Broker URI")
    base_topic: str = Field(default="modbus2mqtt", description="Prefix for every published topic")
    user: Optional[str] = Field(default=None, description="Broker username")
    password: Optional[str] = Field(default=None, description="Broker password")
    client_id: Optional[str] = Field(default=None, description="MQTT client id")
    keepalive: int = Field(default=60, description="Keepalive interval in seconds")
    version: Optional[int] = Field(default=None, description="MQTT protocol version (3, 4 or 5)")
    ca: Optional[Path] = Field(default=None, description="Path to CA certificate")
    key: Optional[Path] = Field(default=None, description="Path to client key")
    cert: Optional[Path] = Field(default=None, description="Path to client certificate")
    reject_unauthorized: bool = Field(default=True, description="Verify broker certificate")
    check_interval: float = Field(default=10.0, description="Connection check interval (seconds)")
    connect_timeout: float = Field(default=10.0, description="Initial connect timeout (seconds)")


class ModbusSettings(BaseSettings):
    """Modbus transport configuration."""

    model_config = SettingsConfigDict(
        env_prefix="MODBUS_",
        env_file=".env",
        extra="ignore",
    )

    transport: str = Field(default="tcp", description="Transport type: tcp or rtu")
    host: str = Field(default="localhost", description="Modbus TCP host")
    port: int = Field(default=502, description="Modbus TCP port")
    serial_port: str = Field(default="/dev/ttyUSB0", description="Serial device for RTU")
    baudrate: int = Field(default=9600, description="Serial baudrate")
    parity: str = Field(default="N", description="Serial parity")
    stopbits: int = Field(default=1, description="Serial stop bits")
    bytesize: int = Field(default=8, description="Serial byte size")
    timeout: float = Field(default=3.0, description="Transport request timeout (seconds)")


class PollingSettings(BaseSettings):
    """Polling loop configuration."""

    model_config = SettingsConfigDict(
        env_prefix="POLLING_",
        env_file=".env",
        extra="ignore",
    )

    interval_ms: int = Field(default=10000, description="Delay between poll cycles (ms)")
    read_timeout: float = Field(default=5.0, description="Timeout for a single register read (seconds)")

    @property
    def interval(self) -> float:
        """Poll interval in seconds."""
        return self.interval_ms / 1000


class Modbus2MqttSettings(BaseSettings):
    """Main configuration for the bridge."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = Field(default="modbus2mqtt")
    log_level: str = Field(default="INFO")

    devices_file: Path = Field(
        default=Path("config") / "devices.yaml",
        description="YAML file listing the devices to poll, relative to the working directory",
    )

    mqtt: MqttSettings = Field(default_factory=MqttSettings)
    modbus: ModbusSettings = Field(default_factory=ModbusSettings)
    polling: PollingSettings = Field(default_factory=PollingSettings)


@lru_cache()
def get_settings() -> Modbus2MqttSettings:
    """
    Get cached bridge settings.

    Uses LRU cache to avoid re-reading environment variables on every access.
    """
    return Modbus2MqttSettings()
