"""
Register descriptor definitions.

Defines dataclasses describing how each output field of a device model
is read from Modbus registers and decoded.
"""
from dataclasses import dataclass, field
from enum import IntEnum
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterator, Mapping, Optional, Tuple, Union

# decode(interpreted_value, raw_buffer) -> value
Decoder = Callable[[Any, bytes], Any]


class FunctionCode(IntEnum):
    """Modbus read function codes."""
    READ_COILS = 1
    READ_DISCRETE_INPUTS = 2
    READ_HOLDING_REGISTERS = 3
    READ_INPUT_REGISTERS = 4


@dataclass(frozen=True)
class FieldSpec:
    """
    Read specification for a single output field.

    Unknown function codes are kept as plain integers; the reader
    rejects them when the field is polled.
    """
    address: int
    function_code: Union[FunctionCode, int] = FunctionCode.READ_INPUT_REGISTERS
    length: int = 1
    decode: Optional[Decoder] = None

    def __post_init__(self):
        """Validate and normalize."""
        if self.length < 1:
            raise ValueError(f"Read length must be >= 1, got {self.length}")
        if self.address < 0:
            raise ValueError(f"Register address must be >= 0, got {self.address}")
        try:
            object.__setattr__(self, "function_code", FunctionCode(self.function_code))
        except ValueError:
            pass

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FieldSpec":
        """
        Build a field spec from a mapping.

        Accepts both the short converter keys (``fc``, ``len``, ``post``)
        and the long names (``function_code``, ``length``, ``decode``).
        Missing or falsy function code and length fall back to the defaults.
        """
        if "address" not in data:
            raise ValueError("Field 'address' is required")

        function_code = data.get("function_code") or data.get("fc") or FunctionCode.READ_INPUT_REGISTERS
        length = data.get("length") or data.get("len") or 1
        decode = data.get("decode") or data.get("post")

        return cls(
            address=int(data["address"]),
            function_code=int(function_code),
            length=int(length),
            decode=decode,
        )


@dataclass(frozen=True)
class RegisterDescriptor:
    """
    Register map for one device model.

    Field order is the order reads are issued in a poll cycle.
    """
    model: str
    fields: Mapping[str, FieldSpec] = field(default_factory=dict)
    vendor: Optional[str] = None
    description: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))

    @classmethod
    def from_dict(
        cls,
        model: str,
        data: Mapping[str, Any],
        vendor: Optional[str] = None,
        description: Optional[str] = None,
    ) -> "RegisterDescriptor":
        """
        Build a descriptor from a mapping.

        Args:
            model: Model name the descriptor is registered under.
            data: Either ``{"fromModbus": {"input": {key: spec}}}`` or a
                flat ``{key: spec}`` mapping. Specs may be dicts or FieldSpec.
            vendor: Optional vendor name.
            description: Optional human readable description.

        Returns:
            RegisterDescriptor with fields in mapping order.
        """
        inputs = data.get("fromModbus", {}).get("input") if "fromModbus" in data else data

        fields: Dict[str, FieldSpec] = {}
        for key, spec in inputs.items():
            fields[key] = spec if isinstance(spec, FieldSpec) else FieldSpec.from_dict(spec)

        return cls(
            model=model,
            fields=fields,
            vendor=vendor,
            description=description,
        )

    def keys(self) -> Tuple[str, ...]:
        """Field keys in declared order."""
        return tuple(self.fields.keys())

    def __iter__(self) -> Iterator[Tuple[str, FieldSpec]]:
        return iter(self.fields.items())

    def __len__(self) -> int:
        return len(self.fields)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for display."""
        return {
            "model": self.model,
            "vendor": self.vendor,
            "description": self.description,
            "fields": list(self.fields.keys()),
        }
