"""
Path algebra that never touches the filesystem.

Both operations work on path components only, so they are safe to use on
subjects and notes that do not exist yet and on paths rooted somewhere else
than the current machine (rendered cross-references between documents).
"""

from __future__ import annotations

import os
from pathlib import Path, PurePath

CURRENT_DIR = "."
PARENT_DIR = ".."


def _separators() -> tuple[str, ...]:
    if os.altsep:
        return (os.sep, os.altsep)
    return (os.sep,)


def _components(path: str | os.PathLike[str]) -> list[str]:
    """Split a path into its components.

    The anchor of an absolute path is its first component. Interior ``.``
    components vanish, but the leading ``.`` of a relative path is kept as a
    component of its own.
    """
    text = os.fspath(path)
    pure = PurePath(text)
    parts = list(pure.parts)

    if not pure.anchor and (
        text == CURRENT_DIR or any(text.startswith(CURRENT_DIR + sep) for sep in _separators())
    ):
        parts.insert(0, CURRENT_DIR)

    return parts


def normalize(path: str | os.PathLike[str]) -> Path | None:
    """Naively normalize a path without resolving it on disk.

    ``.`` components are dropped and ``..`` pops the previous component.
    A ``..`` with nothing left to pop (or following another ``..``) is kept,
    so paths escaping upward stay recognizable::

        normalize("../case/..")                   -> Path("..")
        normalize("../case/../tests/../../../of") -> Path("../../../of")
        normalize("./case/../tests/../../../of")  -> Path("../../of")

    The root of an absolute path is never popped. Returns None when nothing
    is left.
    """
    anchor = PurePath(os.fspath(path)).anchor
    stack: list[str] = []

    for component in _components(path):
        if component == CURRENT_DIR:
            continue

        if component == PARENT_DIR:
            if anchor and len(stack) == 1:
                # `..` directly under the root stays at the root
                continue
            if not stack or stack[-1] == PARENT_DIR:
                stack.append(component)
            else:
                stack.pop()
            continue

        stack.append(component)

    if not stack:
        return None
    return Path(*stack)


def relative_path_from(
    dst: str | os.PathLike[str],
    base: str | os.PathLike[str],
) -> Path | None:
    """Return the path that, joined onto `base`, reaches `dst`.

    Works like ``os.path.relpath`` minus the filesystem: nothing is resolved
    against the current directory, which is why a ``..`` in `base` before the
    paths diverge makes the answer unknowable (None).

    Mixed pairs: an absolute `dst` is returned as is; a relative `dst` with an
    absolute `base` cannot be resolved (None).

    Returns ``Path(".")`` when both paths are the same.
    """
    dst_is_absolute = PurePath(os.fspath(dst)).is_absolute()
    base_is_absolute = PurePath(os.fspath(base)).is_absolute()

    if dst_is_absolute != base_is_absolute:
        return Path(dst) if dst_is_absolute else None

    dst_parts = _components(dst)
    base_parts = _components(base)

    result: list[str] = []
    d = b = 0

    while True:
        dst_part = dst_parts[d] if d < len(dst_parts) else None
        base_part = base_parts[b] if b < len(base_parts) else None

        if dst_part is None and base_part is None:
            break

        if base_part is None:
            result.extend(dst_parts[d:])
            break

        if base_part == CURRENT_DIR and dst_part != CURRENT_DIR:
            b += 1
            continue

        if dst_part is None:
            result.append(PARENT_DIR)
            b += 1
            continue

        if not result and dst_part == base_part:
            d += 1
            b += 1
            continue

        if base_part == PARENT_DIR:
            return None

        # First divergence: climb out of the rest of base, then descend into dst.
        result.extend(PARENT_DIR for _ in base_parts[b:])
        result.extend(dst_parts[d:])
        break

    if not result:
        return Path(CURRENT_DIR)
    return Path(*result)
