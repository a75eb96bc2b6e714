"""Component registry for pluggable PhospheneSim building blocks.

Temporal filters, phosphene layouts, synthetic stimulation sources and
spreading backends register themselves under a string name and are then
created from YAML configuration without hardcoded if/else chains.

Example:
    >>> from phosphenesim.registry import LAYOUT_REGISTRY
    >>> LAYOUT_REGISTRY.register("ring", make_ring_layout)
    >>> positions, sizes = LAYOUT_REGISTRY.create("ring", count=32)
"""

from __future__ import annotations

from typing import Any, Dict, List, Type
import warnings


class ComponentRegistry:
    """Name -> component lookup table.

    A component is either a class, instantiated with keyword arguments or
    through its ``from_config`` classmethod, or a plain callable.

    Attributes:
        _registry: Dict mapping component name to component.
    """

    def __init__(self, registry_name: str = "ComponentRegistry"):
        """Initialize an empty registry.

        Args:
            registry_name: Name used in error messages (e.g. ``"LAYOUT_REGISTRY"``).
        """
        self._registry: Dict[str, Any] = {}
        self._name = registry_name

    def register(self, name: str, component: Any) -> None:
        """Register a component under ``name``.

        Re-registering the same component is a no-op; replacing it with a
        different one warns.

        Args:
            name: String identifier (e.g. ``"grid"``).
            component: Class or callable implementing the component.
        """
        if name in self._registry:
            existing = self._registry[name]
            if existing is component:
                return
            warnings.warn(
                f"{self._name}: Component '{name}' already registered with "
                f"{getattr(existing, '__name__', existing)!s}, overwriting with "
                f"{getattr(component, '__name__', component)!s}",
                UserWarning,
            )
        self._registry[name] = component

    def create(self, name: str, **kwargs) -> Any:
        """Create a component instance by name.

        Args:
            name: Registered component name.
            **kwargs: Arguments for the constructor or callable. A
                single ``config`` keyword is routed to ``from_config`` when
                the component provides one.

        Returns:
            Whatever the component produces.

        Raises:
            KeyError: If ``name`` is not registered.
        """
        component = self._lookup(name)
        if set(kwargs) == {"config"} and hasattr(component, "from_config"):
            return component.from_config(kwargs["config"])
        return component(**kwargs)

    def list_registered(self) -> List[str]:
        """Return the sorted list of registered names."""
        return sorted(self._registry.keys())

    def is_registered(self, name: str) -> bool:
        return name in self._registry

    def get_class(self, name: str) -> Type:
        """Return the component registered under ``name``.

        Raises:
            KeyError: If ``name`` is not registered.
        """
        return self._lookup(name)

    def _lookup(self, name: str) -> Any:
        if name not in self._registry:
            available = ", ".join(sorted(self._registry.keys()))
            raise KeyError(
                f"{self._name}: Component '{name}' not registered. "
                f"Available: {available}"
            )
        return self._registry[name]


FILTER_REGISTRY = ComponentRegistry("FILTER_REGISTRY")
LAYOUT_REGISTRY = ComponentRegistry("LAYOUT_REGISTRY")
STIMULUS_REGISTRY = ComponentRegistry("STIMULUS_REGISTRY")
SPREAD_REGISTRY = ComponentRegistry("SPREAD_REGISTRY")
