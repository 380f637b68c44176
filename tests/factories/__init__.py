"""
Test data factories.
"""
from .device_factory import DeviceConfigFactory, DeviceEntryFactory, FieldSpecFactory

__all__ = [
    "DeviceConfigFactory",
    "DeviceEntryFactory",
    "FieldSpecFactory",
]
