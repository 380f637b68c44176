"""
Descriptor registry for device models.

Central lookup from model name to the register descriptor used
to poll devices of that model.
"""
import logging
from typing import Dict, Iterable, Iterator, List, Optional

from .definitions import RegisterDescriptor
from .models import BUILTIN_DESCRIPTORS

logger = logging.getLogger(__name__)


class DescriptorRegistry:
    """
    Registry of register descriptors keyed by model name.

    Model lookups are case sensitive and match the ``model`` value
    used in the devices configuration.
    """

    def __init__(self, descriptors: Optional[Iterable[RegisterDescriptor]] = None):
        """
        Initialize the registry.

        Args:
            descriptors: Optional descriptors to register immediately.
        """
        self._descriptors: Dict[str, RegisterDescriptor] = {}
        for descriptor in descriptors or []:
            self.register(descriptor)

    def register(self, descriptor: RegisterDescriptor) -> None:
        """
        Register a descriptor.

        Args:
            descriptor: The descriptor to register.

        Raises:
            ValueError: If the model is already registered.
        """
        if descriptor.model in self._descriptors:
            raise ValueError(
                f"Model '{descriptor.model}' is already registered"
            )

        self._descriptors[descriptor.model] = descriptor
        logger.debug(
            f"Registered model: {descriptor.model} ({len(descriptor)} fields)"
        )

    def unregister(self, model: str) -> Optional[RegisterDescriptor]:
        """
        Remove a descriptor from the registry.

        Returns:
            The removed descriptor, or None if not found.
        """
        descriptor = self._descriptors.pop(model, None)
        if descriptor:
            logger.debug(f"Unregistered model: {model}")
        return descriptor

    def lookup_by_model(self, model: str) -> Optional[RegisterDescriptor]:
        """
        Get the descriptor for a model.

        Args:
            model: Device model name.

        Returns:
            The descriptor, or None if the model is unknown.
        """
        return self._descriptors.get(model)

    def list_models(self) -> List[Dict]:
        """List all models with basic info."""
        return [descriptor.to_dict() for descriptor in self]

    def __len__(self) -> int:
        return len(self._descriptors)

    def __contains__(self, model: str) -> bool:
        return model in self._descriptors

    def __iter__(self) -> Iterator[RegisterDescriptor]:
        return iter(self._descriptors.values())


def default_registry() -> DescriptorRegistry:
    """Create a registry holding the built-in models."""
    registry = DescriptorRegistry(BUILTIN_DESCRIPTORS)
    logger.info(f"Initialized descriptor registry with {len(registry)} models")
    return registry
