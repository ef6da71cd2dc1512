"""
Namespace registry: read-only lookup of namespace policies by name.
"""

from __future__ import annotations

from typing import Iterable, Iterator

from memcoord.exceptions import ConfigurationError, UnknownNamespaceError
from memcoord.types import Namespace


class NamespaceRegistry:
    """Resolves namespace names to their policy.

    Built once from the coordinator config; there is no mutation API.
    """

    def __init__(self, namespaces: Iterable[Namespace]) -> None:
        """Initialize the registry.

        Args:
            namespaces: Configured namespaces. Names must be unique.

        Raises:
            ConfigurationError: If a name is configured twice.
        """
        self._namespaces: dict[str, Namespace] = {}
        for ns in namespaces:
            if ns.name in self._namespaces:
                raise ConfigurationError(
                    "Duplicate namespace", context={"namespace": ns.name}
                )
            self._namespaces[ns.name] = ns

    def resolve(self, name: str) -> Namespace | None:
        """Look up a namespace, returning None if it is not configured."""
        return self._namespaces.get(name)

    def require(self, name: str) -> Namespace:
        """Look up a namespace that must exist.

        Raises:
            UnknownNamespaceError: If the namespace is not configured.
        """
        ns = self._namespaces.get(name)
        if ns is None:
            raise UnknownNamespaceError(
                f"Unknown namespace: {name}",
                context={"namespace": name, "known": self.names()},
            )
        return ns

    def names(self) -> list[str]:
        """Configured namespace names in declaration order."""
        return list(self._namespaces)

    def __contains__(self, name: object) -> bool:
        return name in self._namespaces

    def __iter__(self) -> Iterator[Namespace]:
        return iter(self._namespaces.values())

    def __len__(self) -> int:
        return len(self._namespaces)
