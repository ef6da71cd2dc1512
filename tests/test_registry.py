"""
Tests for namespaces and the namespace registry.
"""

from __future__ import annotations

import pytest

from memcoord.exceptions import ConfigurationError, UnknownNamespaceError
from memcoord.registry import NamespaceRegistry
from memcoord.types import DEFAULT_NAMESPACES, Namespace


class TestNamespace:
    """Tests for namespace validation."""

    def test_defaults(self) -> None:
        """A bare namespace never expires and is uncapped."""
        ns = Namespace("notes")

        assert ns.ttl_seconds is None
        assert ns.max_entries is None
        assert ns.compression_enabled is True

    @pytest.mark.parametrize("name", ["", "a:b", "a/b", "a\\b"])
    def test_invalid_names_rejected(self, name: str) -> None:
        """Empty names and names with separators are rejected."""
        with pytest.raises(ConfigurationError):
            Namespace(name)

    def test_zero_max_entries_rejected(self) -> None:
        """A cap must allow at least one entry."""
        with pytest.raises(ConfigurationError) as exc_info:
            Namespace("capped", max_entries=0)

        assert exc_info.value.context["max_entries"] == 0

    def test_negative_ttl_rejected(self) -> None:
        """Negative TTLs are rejected."""
        with pytest.raises(ConfigurationError):
            Namespace("short", ttl_seconds=-1)

    def test_default_namespace_set(self) -> None:
        """The default set carries the expected policies."""
        by_name = {ns.name: ns for ns in DEFAULT_NAMESPACES}

        assert list(by_name) == ["session", "analysis", "goap", "swarm", "insights", "patterns"]
        assert by_name["session"].ttl_seconds == 86_400
        assert by_name["swarm"].ttl_seconds == 3_600
        assert by_name["goap"].compression_enabled is False
        assert by_name["patterns"].max_entries == 1_000
        assert by_name["patterns"].ttl_seconds is None
        assert by_name["insights"].key_prefix == "portfolio-cognitive-command/insights/"


class TestNamespaceRegistry:
    """Tests for registry lookups."""

    def test_resolve_known(self, registry: NamespaceRegistry) -> None:
        """Known names resolve to their policy."""
        ns = registry.resolve("patterns")

        assert ns is not None
        assert ns.max_entries == 2

    def test_resolve_unknown_returns_none(self, registry: NamespaceRegistry) -> None:
        """Unknown names resolve to None."""
        assert registry.resolve("nope") is None

    def test_require_unknown_raises(self, registry: NamespaceRegistry) -> None:
        """require() raises with the known names in context."""
        with pytest.raises(UnknownNamespaceError) as exc_info:
            registry.require("nope")

        assert exc_info.value.context["namespace"] == "nope"
        assert "session" in exc_info.value.context["known"]
        assert "nope" in str(exc_info.value)

    def test_duplicate_names_rejected(self) -> None:
        """Configuring a name twice is an error."""
        with pytest.raises(ConfigurationError):
            NamespaceRegistry([Namespace("a"), Namespace("b"), Namespace("a", ttl_seconds=5)])

    def test_container_protocol(self, registry: NamespaceRegistry) -> None:
        """Registry supports len, in, and iteration in declaration order."""
        assert len(registry) == 4
        assert "docs" in registry
        assert "nope" not in registry
        assert [ns.name for ns in registry] == registry.names()
        assert registry.names() == ["session", "patterns", "plain", "docs"]
