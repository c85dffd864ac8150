"""Catalog reference resolution.

Persisted builds reference catalog entries by stable id, by legacy name, or
by a generated slug, depending on when they were saved. ``resolve`` runs an
ordered list of lookup strategies and returns the first hit:

1. id equality (ids compared as strings, so ``12`` matches ``"12"``)
2. exact name
3. case-insensitive name
4. sanitized lookup value against the raw id, also with ``_`` and ``-`` swapped
5. sanitized lookup value against each candidate's sanitized name

Each strategy is a plain function and can be exercised on its own.

Example:
    >>> catalog = [{"id": "fire_ball", "name": "Fireball"}]
    >>> resolve(catalog, {"name": "Fire Ball"})["id"]
    'fire_ball'
"""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel

from realms_engine.core.exceptions import CatalogError
from realms_engine.core.logging import get_logger
from realms_engine.models.catalog import entry_value


logger = get_logger(__name__)

_WHITESPACE = re.compile(r"\s+")
_DISALLOWED = re.compile(r"[^a-z0-9_-]")


# =============================================================================
# Reference Normalization
# =============================================================================


@dataclass(frozen=True)
class Reference:
    """A lookup key pair; either side may be missing."""

    id: str | None = None
    name: str | None = None

    def lookup_values(self) -> list[str]:
        """Non-empty lookup values, name first."""
        return [v for v in (self.name, self.id) if v]


def id_key(value: Any) -> str | None:
    """String form of an id, so numeric and string ids compare equal."""
    if value is None or value == "":
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def sanitize_id(value: Any) -> str:
    """Lowercase, collapse whitespace runs to ``_``, strip other punctuation.

    Example:
        >>> sanitize_id("Fire Ball!")
        'fire_ball'
    """
    text = str(value).lower()
    text = _WHITESPACE.sub("_", text)
    return _DISALLOWED.sub("", text)


def as_reference(ref: Any) -> Reference:
    """Build a Reference from a mapping, an object or a bare id/name."""
    if ref is None:
        return Reference()
    if isinstance(ref, Reference):
        return ref
    if isinstance(ref, (int, float)) and not isinstance(ref, bool):
        return Reference(id=id_key(ref))
    if isinstance(ref, str):
        # A bare string may be either an id or a legacy name
        return Reference(id=id_key(ref), name=ref or None)
    name = entry_value(ref, "name")
    return Reference(
        id=id_key(entry_value(ref, "id")),
        name=str(name) if name not in (None, "") else None,
    )


def _entry_name(entry: Any) -> str:
    name = entry_value(entry, "name")
    return "" if name is None else str(name)


# =============================================================================
# Strategies
# =============================================================================

Strategy = Callable[[Sequence[Any], Reference], Any]


def match_id(catalog: Sequence[Any], ref: Reference) -> Any:
    if ref.id is None:
        return None
    for entry in catalog:
        if id_key(entry_value(entry, "id")) == ref.id:
            return entry
    return None


def match_exact_name(catalog: Sequence[Any], ref: Reference) -> Any:
    if not ref.name:
        return None
    for entry in catalog:
        if _entry_name(entry) == ref.name:
            return entry
    return None


def match_casefold_name(catalog: Sequence[Any], ref: Reference) -> Any:
    if not ref.name:
        return None
    wanted = ref.name.casefold()
    for entry in catalog:
        if _entry_name(entry).casefold() == wanted:
            return entry
    return None


def match_sanitized_id(catalog: Sequence[Any], ref: Reference) -> Any:
    """Match a slugged lookup value against raw catalog ids."""
    for value in ref.lookup_values():
        slug = sanitize_id(value)
        if not slug:
            continue
        candidates = {slug, slug.replace("_", "-"), slug.replace("-", "_")}
        for entry in catalog:
            if id_key(entry_value(entry, "id")) in candidates:
                return entry
    return None


def match_sanitized_name(catalog: Sequence[Any], ref: Reference) -> Any:
    """Match a slugged lookup value against each entry's slugged name."""
    for value in ref.lookup_values():
        slug = sanitize_id(value)
        if not slug:
            continue
        for entry in catalog:
            if sanitize_id(_entry_name(entry)) == slug:
                return entry
    return None


DEFAULT_STRATEGIES: tuple[Strategy, ...] = (
    match_id,
    match_exact_name,
    match_casefold_name,
    match_sanitized_id,
    match_sanitized_name,
)


# =============================================================================
# Public API
# =============================================================================


def resolve(
    catalog: Sequence[Any] | None,
    ref: Any,
    strategies: Sequence[Strategy] = DEFAULT_STRATEGIES,
) -> Any:
    """Find the catalog entry a saved reference points at.

    Args:
        catalog: Catalog entries (mappings, models or plain objects).
        ref: A ``{id?, name?}`` mapping, an object with ``id``/``name``
            attributes, or a bare id or name.
        strategies: Lookup strategies tried in order; first hit wins.

    Returns:
        The matching catalog entry, or None for an unknown reference.
    """
    if not catalog:
        return None
    reference = as_reference(ref)
    if reference.id is None and not reference.name:
        return None
    for strategy in strategies:
        found = strategy(catalog, reference)
        if found is not None:
            logger.debug(
                "Reference resolved",
                strategy=strategy.__name__,
                ref_id=reference.id,
                ref_name=reference.name,
            )
            return found
    return None


def resolve_or_raise(catalog: Sequence[Any] | None, ref: Any) -> Any:
    """Like ``resolve`` but raise for unknown references.

    Raises:
        CatalogError: If no strategy matches.
    """
    found = resolve(catalog, ref)
    if found is None:
        reference = as_reference(ref)
        raise CatalogError(
            "Unknown catalog reference",
            reference={"id": reference.id, "name": reference.name},
            details={"catalog_size": len(catalog or ())},
        )
    return found


def normalize_ref(catalog: Sequence[Any] | None, ref: Any) -> Any:
    """Upgrade a legacy reference so it carries the canonical id and name.

    Unresolvable references are returned unchanged.
    """
    found = resolve(catalog, ref)
    if found is None:
        return ref
    update = {"id": entry_value(found, "id"), "name": _entry_name(found) or None}
    if isinstance(ref, BaseModel):
        return ref.model_copy(update=update)
    if isinstance(ref, Mapping):
        return {**ref, **update}
    return dict(update)


def normalize_refs(refs: Sequence[Any], catalog: Sequence[Any] | None) -> list[Any]:
    """Apply ``normalize_ref`` to every reference in a list."""
    return [normalize_ref(catalog, ref) for ref in refs]


__all__ = [
    "Reference",
    "Strategy",
    "DEFAULT_STRATEGIES",
    "id_key",
    "sanitize_id",
    "as_reference",
    "match_id",
    "match_exact_name",
    "match_casefold_name",
    "match_sanitized_id",
    "match_sanitized_name",
    "resolve",
    "resolve_or_raise",
    "normalize_ref",
    "normalize_refs",
]
