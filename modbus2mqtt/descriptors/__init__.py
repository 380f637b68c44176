"""
Register descriptors and the model registry.
"""
from .definitions import Decoder, FieldSpec, FunctionCode, RegisterDescriptor
from .registry import DescriptorRegistry, default_registry

__all__ = [
    "Decoder",
    "FieldSpec",
    "FunctionCode",
    "RegisterDescriptor",
    "DescriptorRegistry",
    "default_registry",
]
