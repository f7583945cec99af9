"""Dotted-path access into nested dict/list documents.

A path such as ``shipper.address.postalCode`` walks nested dicts. When an
intermediate segment resolves to a list, the rest of the path is applied to
every element of that list (fan-out), so ``items.price`` addresses the
``price`` key of each item; elements lacking the key read as None, and the
default comes back only when no element has it. A purely numeric segment
indexes into a list instead of fanning out. None of these helpers raise: a
path that cannot be walked reads as the default and writes as a no-op.
"""

from __future__ import annotations

import copy
import re
from typing import Any, Callable


class _Sentinel:
    def __init__(self, name: str):
        self._name = name

    def __repr__(self) -> str:
        return self._name


MISSING: Any = _Sentinel("MISSING")
DELETE: Any = _Sentinel("DELETE")

LeafVisitor = Callable[[dict, str], None]

_FIELD_REFERENCE = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*(\.[a-zA-Z_][a-zA-Z0-9_]*)+$")


def split_path(path: str) -> list[str]:
    return [part for part in path.split(".") if part] if path else []


def is_field_reference(value: Any) -> bool:
    """True when a mapping value names another dotted field rather than an instruction."""
    if not value or not isinstance(value, str):
        return False
    if value.startswith("(") or "," in value:
        return False
    return bool(_FIELD_REFERENCE.match(value))


def get_path(obj: Any, path: str, default: Any = None) -> Any:
    """Read the value at ``path``; lists met mid-path yield one value per element."""
    parts = split_path(path)
    if not parts:
        return default
    return _get(obj, parts, default)


def has_path(obj: Any, path: str) -> bool:
    return get_path(obj, path, MISSING) is not MISSING


def copy_path(obj: Any, source: str, target: str) -> bool:
    """Copy the value at ``source`` to ``target``.

    Leading segments shared by both paths are walked together, so a list met
    there pairs each element's source with the same element's target
    (``items.sku`` -> ``items.code``). The remaining source segments must
    resolve to a single value; a source that would fan out over a list the
    target does not share is not copied. Returns True when anything was
    written.
    """
    return _copy(obj, split_path(source), split_path(target))


def set_path(obj: Any, path: str, value: Any) -> None:
    """Assign ``value`` at ``path``, creating missing intermediate dicts."""

    def _assign(container: dict, key: str) -> None:
        container[key] = copy.deepcopy(value) if isinstance(value, (dict, list)) else value

    _walk(obj, split_path(path), create=True, visit=_assign)


def delete_path(obj: Any, path: str) -> None:
    """Remove the key at ``path`` (from every element when fanned out)."""

    def _remove(container: dict, key: str) -> None:
        container.pop(key, None)

    _walk(obj, split_path(path), create=False, visit=_remove)


def update_path(
    obj: Any,
    path: str,
    func: Callable[[Any], Any],
    *,
    create: bool = False,
) -> None:
    """Replace each value at ``path`` with ``func(current)``.

    ``current`` is ``MISSING`` when the final key is absent. ``func`` returns
    the new value, ``MISSING`` to leave the slot untouched, or ``DELETE`` to
    drop the key.
    """

    def _apply(container: dict, key: str) -> None:
        result = func(container.get(key, MISSING))
        if result is DELETE:
            container.pop(key, None)
        elif result is not MISSING:
            container[key] = result

    _walk(obj, split_path(path), create=create, visit=_apply)


def _get(node: Any, parts: list[str], default: Any) -> Any:
    current = node
    for index, part in enumerate(parts):
        if isinstance(current, list):
            if not part.isdigit():
                found = [_get(item, parts[index:], MISSING) for item in current]
                if all(value is MISSING for value in found):
                    return default
                return [None if value is MISSING else value for value in found]
            position = int(part)
            current = current[position] if position < len(current) else None
        elif isinstance(current, dict):
            current = current.get(part)
        else:
            return default
        if current is None:
            return default
    return current


def _get_single(node: Any, parts: list[str]) -> Any:
    current = node
    for part in parts:
        if isinstance(current, list) and part.isdigit():
            position = int(part)
            current = current[position] if position < len(current) else None
        elif isinstance(current, dict):
            current = current.get(part)
        else:
            return MISSING
        if current is None:
            return MISSING
    return current


def _copy(node: Any, source: list[str], target: list[str]) -> bool:
    shared = len(source) > 1 and len(target) > 1 and source[0] == target[0]
    if isinstance(node, list):
        if shared and source[0].isdigit():
            position = int(source[0])
            if position >= len(node):
                return False
            return _copy(node[position], source[1:], target[1:])
        copied = [_copy(item, source, target) for item in node]
        return any(copied)
    if not isinstance(node, dict):
        return False
    if shared:
        return _copy(node.get(source[0]), source[1:], target[1:])
    value = _get_single(node, source)
    if value is MISSING:
        return False
    set_path(node, ".".join(target), value)
    return True


def _walk(node: Any, parts: list[str], *, create: bool, visit: LeafVisitor) -> None:
    if not parts:
        return

    current = node
    for index, part in enumerate(parts[:-1]):
        if isinstance(current, list):
            if not part.isdigit():
                for item in current:
                    _walk(item, parts[index:], create=create, visit=visit)
                return
            position = int(part)
            if position >= len(current):
                return
            current = current[position]
            continue
        if not isinstance(current, dict):
            return
        child = current.get(part)
        if child is None:
            if not create:
                return
            child = current[part] = {}
        current = child

    if isinstance(current, list):
        for item in current:
            _walk(item, parts[-1:], create=create, visit=visit)
        return
    if isinstance(current, dict):
        visit(current, parts[-1])
