"""
Device configuration and resolution.
"""
from .device import Device, DeviceConfig
from .loader import DeviceConfigLoader

__all__ = [
    "Device",
    "DeviceConfig",
    "DeviceConfigLoader",
]
