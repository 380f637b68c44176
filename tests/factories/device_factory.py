"""
Device-related test data factories.
"""
import factory

from modbus2mqtt.descriptors.definitions import FieldSpec, FunctionCode
from modbus2mqtt.devices.device import DeviceConfig


class DeviceConfigFactory(factory.Factory):
    """
    Factory for DeviceConfig objects.

    Usage:
        config = DeviceConfigFactory()
        config = DeviceConfigFactory(model="SDM120")
    """

    class Meta:
        model = DeviceConfig

    id = factory.Sequence(lambda n: f"device_{n}")
    model = "XY-MD02"
    unit_id = factory.Sequence(lambda n: (n % 247) + 1)


class DeviceEntryFactory(factory.Factory):
    """Factory for raw device entries as found in devices.yaml."""

    class Meta:
        model = dict

    id = factory.Sequence(lambda n: f"device_{n}")
    model = "XY-MD02"
    modbus_id = factory.Sequence(lambda n: (n % 247) + 1)


class FieldSpecFactory(factory.Factory):
    """Factory for FieldSpec objects reading input registers."""

    class Meta:
        model = FieldSpec

    address = factory.Sequence(lambda n: n)
    function_code = FunctionCode.READ_INPUT_REGISTERS
    length = 1
    decode = None
