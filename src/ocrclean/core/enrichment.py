"""Static code-to-description lookup.

Tables are built once when a rule set is loaded and exposed only through
read-only mapping proxies. Unmapped codes are normal (standards keep adding
codes) and resolve to ``description=None`` instead of failing the record.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from types import MappingProxyType

from ocrclean.exceptions import ConfigurationError

from .types import EnrichedValue

logger = logging.getLogger(__name__)


class LookupTable:
    """A named, read-only code → description mapping."""

    __slots__ = ("name", "_entries")

    def __init__(self, name: str, entries: Mapping[str, str]):
        if not name:
            raise ConfigurationError("Lookup table name must not be empty", setting_name="lookups")
        if not isinstance(entries, Mapping):
            raise ConfigurationError(
                "Lookup table must be a mapping",
                setting_name=f"lookups.{name}",
                setting_value=type(entries).__name__,
            )
        for code, description in entries.items():
            if not isinstance(code, str) or not isinstance(description, str):
                raise ConfigurationError(
                    "Lookup codes and descriptions must be strings",
                    setting_name=f"lookups.{name}",
                    setting_value=code,
                )
        self.name = name
        self._entries: Mapping[str, str] = MappingProxyType(dict(entries))

    @property
    def entries(self) -> Mapping[str, str]:
        return self._entries

    def describe(self, code: str | None) -> str | None:
        if code is None:
            return None
        return self._entries.get(code)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, code: object) -> bool:
        return code in self._entries

    def __repr__(self) -> str:
        return f"LookupTable(name={self.name!r}, entries={len(self._entries)})"


class LookupEnricher:
    """Resolves codes against a fixed set of lookup tables."""

    def __init__(self, tables: Iterable[LookupTable] = ()):
        by_name: dict[str, LookupTable] = {}
        for table in tables:
            if table.name in by_name:
                raise ConfigurationError(
                    "Duplicate lookup table", setting_name=f"lookups.{table.name}"
                )
            by_name[table.name] = table
        self._tables: Mapping[str, LookupTable] = MappingProxyType(by_name)

    @property
    def table_names(self) -> list[str]:
        return list(self._tables)

    def has_table(self, name: str) -> bool:
        return name in self._tables

    def enrich(self, table_name: str, code: str | None) -> EnrichedValue:
        """Describe ``code`` using ``table_name``.

        Never raises for a code. An unknown table is a configuration mistake
        and is rejected when the pipeline is built, so it only logs here.
        """
        table = self._tables.get(table_name)
        if table is None:
            logger.warning("Lookup table %r not loaded", table_name)
            return EnrichedValue(code=code)
        return EnrichedValue(code=code, description=table.describe(code))
