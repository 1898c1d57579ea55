"""Collection identifiers and aliases for one index snapshot."""

from __future__ import annotations

from types import MappingProxyType
from typing import Dict, Iterable, Mapping, Tuple

from folio.exceptions import BuildError, CollectionNotFoundError


class CollectionRegistry:
    """Maps collection identifiers and their aliases to canonical identifiers.

    Identifiers and aliases share one namespace: an alias may not shadow an
    identifier and may not point at two collections, so resolution is a plain
    dictionary lookup. An alias equal to its own identifier is ignored.
    """

    __slots__ = ("_identifiers", "_aliases")

    def __init__(
        self, identifiers: Iterable[str], aliases: Mapping[str, Iterable[str]] | None = None
    ) -> None:
        ids = tuple(sorted(set(identifiers)))
        for cid in ids:
            if not cid or not cid.strip():
                raise BuildError("Collection identifier must be a non-empty string")
            if cid != cid.strip():
                raise BuildError(f"Collection identifier {cid!r} has surrounding whitespace")

        alias_map: Dict[str, str] = {}
        for cid, names in (aliases or {}).items():
            if cid not in ids:
                raise BuildError(f"Aliases declared for unknown collection {cid!r}")
            for raw_alias in names:
                alias = raw_alias.strip()
                if not alias or alias == cid:
                    continue
                if alias in ids:
                    raise BuildError(f"Alias {alias!r} of {cid!r} shadows a collection identifier")
                owner = alias_map.get(alias)
                if owner is not None and owner != cid:
                    raise BuildError(f"Alias {alias!r} is claimed by both {owner!r} and {cid!r}")
                alias_map[alias] = cid

        self._identifiers = ids
        self._aliases: Mapping[str, str] = MappingProxyType(alias_map)

    def resolve(self, name: str) -> str:
        """Return the canonical identifier for an identifier or alias."""
        key = name.strip()
        if key in self._identifiers:
            return key
        try:
            return self._aliases[key]
        except KeyError:
            raise CollectionNotFoundError(key) from None

    def list_collections(self) -> Tuple[str, ...]:
        """Canonical identifiers, sorted ascending."""
        return self._identifiers

    def aliases_of(self, identifier: str) -> Tuple[str, ...]:
        return tuple(sorted(a for a, cid in self._aliases.items() if cid == identifier))

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and (name in self._identifiers or name in self._aliases)

    def __len__(self) -> int:
        return len(self._identifiers)
