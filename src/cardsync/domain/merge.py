"""Field merge rules.

For every mutable field the final value is chosen with the priority
incoming > fallback (only while unifying two cards) > existing > unset.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Final

if TYPE_CHECKING:
    from collections.abc import Iterable

type FieldPath = tuple[str, ...]


class _Unset:
    _instance: _Unset | None = None

    def __new__(cls) -> _Unset:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Final = _Unset()


def is_present(value: object) -> bool:
    """Return ``True`` for values that carry information."""

    if value is None or value is UNSET:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, Mapping | list | tuple | set):
        return len(value) > 0
    return True


def merge_field(existing: object, incoming: object, fallback: object, upsert_allowed: bool) -> Any:
    """Pick the final value of one field; ``UNSET`` means drop the field."""

    if is_present(incoming):
        return incoming
    if upsert_allowed and is_present(fallback):
        return fallback
    if is_present(existing):
        return existing
    return UNSET


def get_path(payload: Mapping[str, Any] | None, path: FieldPath) -> Any:
    current: Any = payload
    for key in path:
        if not isinstance(current, Mapping):
            return None
        current = current.get(key)
    return current


def set_path(payload: dict[str, Any], path: FieldPath, value: Any) -> None:
    """Write ``value`` at ``path`` inside ``payload``, which the caller owns."""

    *parents, leaf = path
    current = payload
    for key in parents:
        child = current.get(key)
        if not isinstance(child, dict):
            child = {}
            current[key] = child
        current = child
    current[leaf] = value


def unset_path(payload: dict[str, Any], path: FieldPath) -> bool:
    """Remove ``path`` and any parent mapping the removal leaves empty.

    Returns whether a key was removed; untouched parents are kept even if empty.
    """

    if len(path) == 1:
        if path[0] not in payload:
            return False
        del payload[path[0]]
        return True
    child = payload.get(path[0])
    if not isinstance(child, dict):
        return False
    removed = unset_path(child, path[1:])
    if removed and not child:
        del payload[path[0]]
    return removed


def merge_fields(
    existing: Mapping[str, Any],
    *,
    incoming: Mapping[FieldPath, Any],
    fallback: Mapping[str, Any] | None,
    fields: Iterable[FieldPath],
    upsert_allowed: bool,
    placeholders: Mapping[FieldPath, Any] | None = None,
) -> dict[str, Any]:
    """Merge ``fields`` of a card payload and return a new payload.

    ``existing`` and ``fallback`` are card dictionaries (see ``Card.to_dict``);
    ``incoming`` maps field paths to the event's values. A value equal to the
    field's placeholder counts as absent on every side.
    """

    placeholders = placeholders or {}
    merged: dict[str, Any] = _deep_copy(existing)
    for path in fields:
        placeholder = placeholders.get(path, UNSET)

        def _clean(value: Any, placeholder: Any = placeholder) -> Any:
            return None if placeholder is not UNSET and value == placeholder else value

        value = merge_field(
            _clean(get_path(existing, path)),
            _clean(incoming.get(path)),
            _clean(get_path(fallback, path)) if fallback is not None else None,
            upsert_allowed,
        )
        if value is UNSET:
            unset_path(merged, path)
        else:
            set_path(merged, path, _deep_copy(value))
    return merged


def _deep_copy(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {key: _deep_copy(item) for key, item in value.items()}
    if isinstance(value, list | tuple):
        return [_deep_copy(item) for item in value]
    return value
