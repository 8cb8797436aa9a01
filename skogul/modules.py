"""Registry of named modules (parsers, senders, receivers...)."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Optional


@dataclass
class Module:
    """Metadata for a module: its name, aliases and how to allocate it.

    A module with ``auto_make`` set is created with defaults when it is
    referenced by name without being defined in configuration.
    """

    name: str
    alloc: Optional[Callable[[], Any]] = None
    aliases: tuple[str, ...] = ()
    extras: tuple[Any, ...] = ()
    help: str = ""
    auto_make: bool = False


class ModuleMap(dict):
    """Maps module names and aliases to their Module."""

    def add(self, item: Module) -> None:
        """Register a module under its name and all its aliases.

        Raises ValueError if the module has no allocator or if the name or
        an alias is already taken.
        """
        if item.name in self:
            raise ValueError(f"module name {item.name!r} already registered")
        if item.alloc is None:
            raise ValueError(f"module {item.name!r} has no allocator")
        seen: set[str] = set()
        for alias in item.aliases:
            if alias in self or alias in seen:
                raise ValueError(f"module alias {alias!r} already registered")
            seen.add(alias)
        for alias in item.aliases:
            self[alias] = item
        self[item.name] = item

    def lookup(self, name: str) -> Optional[Module]:
        """Return the module called ``name`` if it exists and is auto-made."""
        module = self.get(name)
        if module is not None and module.auto_make:
            return module
        return None