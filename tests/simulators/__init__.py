"""
In-memory device simulators for tests.
"""
from .modbus_session import FakeModbusSession, ReadCall

__all__ = ["FakeModbusSession", "ReadCall"]
