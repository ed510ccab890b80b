"""Read-only scheme catalog."""

from __future__ import annotations

from collections.abc import Iterable

from src.models.scheme import Scheme


class SchemeCatalog:
    """Immutable collection of seeded schemes indexed by id.

    Raises :class:`ValueError` on construction if two schemes share an
    ``id`` or an ``external_id``.
    """

    __slots__ = ("_by_external_id", "_by_id", "_schemes")

    def __init__(self, schemes: Iterable[Scheme]) -> None:
        self._schemes: tuple[Scheme, ...] = tuple(schemes)
        self._by_id: dict[int, Scheme] = {}
        self._by_external_id: dict[str, Scheme] = {}

        for scheme in self._schemes:
            if scheme.id in self._by_id:
                raise ValueError(f"Duplicate scheme id: {scheme.id}")
            if scheme.external_id in self._by_external_id:
                raise ValueError(f"Duplicate scheme external_id: {scheme.external_id}")
            self._by_id[scheme.id] = scheme
            self._by_external_id[scheme.external_id] = scheme

    def list_schemes(self) -> list[Scheme]:
        """Snapshot of the full catalog, in seeding order."""
        return list(self._schemes)

    def get(self, scheme_id: int) -> Scheme | None:
        return self._by_id.get(scheme_id)

    def get_by_external_id(self, external_id: str) -> Scheme | None:
        return self._by_external_id.get(external_id)

    def __len__(self) -> int:
        return len(self._schemes)
