"""
Built-in device models.

Register maps for devices supported out of the box. Field keys may use
dotted paths to produce nested documents.
"""
from typing import List

from . import decoders
from .definitions import FieldSpec, FunctionCode, RegisterDescriptor


def _tenths_signed(interpreted, raw):
    return decoders.int16(interpreted, raw) / 10


XY_MD02 = RegisterDescriptor(
    model="XY-MD02",
    vendor="Generic",
    description="SHT20 temperature and humidity sensor",
    fields={
        "temperature": FieldSpec(address=0x0001, decode=_tenths_signed),
        "humidity": FieldSpec(address=0x0002, decode=decoders.scale(0.1, 1)),
    },
)

# Eastron single phase meter, every value is a float32 over two input registers
SDM120 = RegisterDescriptor(
    model="SDM120",
    vendor="Eastron",
    description="Single phase energy meter",
    fields={
        "power.voltage": FieldSpec(address=0x0000, length=2, decode=decoders.float32()),
        "power.current": FieldSpec(address=0x0006, length=2, decode=decoders.float32()),
        "power.active": FieldSpec(address=0x000C, length=2, decode=decoders.float32()),
        "power.apparent": FieldSpec(address=0x0012, length=2, decode=decoders.float32()),
        "power.factor": FieldSpec(address=0x001E, length=2, decode=decoders.float32()),
        "frequency": FieldSpec(address=0x0046, length=2, decode=decoders.float32()),
        "energy.import": FieldSpec(address=0x0048, length=2, decode=decoders.float32()),
        "energy.total": FieldSpec(address=0x0156, length=2, decode=decoders.float32()),
    },
)

R4D3B16 = RegisterDescriptor(
    model="R4D3B16",
    vendor="Eletechsup",
    description="16 channel relay board",
    fields={
        f"relay.{channel + 1}": FieldSpec(
            address=channel,
            function_code=FunctionCode.READ_COILS,
            decode=decoders.boolean,
        )
        for channel in range(16)
    },
)


BUILTIN_DESCRIPTORS: List[RegisterDescriptor] = [
    XY_MD02,
    SDM120,
    R4D3B16,
]
