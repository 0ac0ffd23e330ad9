# landsatpipe/ingest/mtl.py
"""
Landsat ``*_MTL.txt`` metadata
------------------------------
The MTL file is an ODL-style listing::

    GROUP = L1_METADATA_FILE
      GROUP = PRODUCT_METADATA
        DATE_ACQUIRED = 2015-01-01
        SCENE_CENTER_TIME = "15:30:28.6510870Z"
      END_GROUP = PRODUCT_METADATA
    END_GROUP = L1_METADATA_FILE
    END

Groups become nested dicts, quoted values stay strings, bare numbers become
``int``/``float`` and everything else (dates) is kept verbatim.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Dict, Iterator, Optional

__all__ = ["MTL"]


def _parse_value(raw: str) -> Any:
    raw = raw.strip()
    if len(raw) >= 2 and raw[0] == raw[-1] == '"':
        return raw[1:-1]
    for cast in (int, float):
        try:
            return cast(raw)
        except ValueError:
            pass
    return raw


class MTL(Mapping):
    """Read-only view over parsed MTL groups. ``MTL()`` is the empty record."""

    def __init__(self, groups: Optional[Mapping[str, Any]] = None) -> None:
        self._groups: Dict[str, Any] = dict(groups or {})

    @classmethod
    def parse(cls, text: str) -> "MTL":
        root: Dict[str, Any] = {}
        stack = [("", root)]
        for lineno, line in enumerate(text.splitlines(), 1):
            line = line.strip()
            if not line:
                continue
            if line == "END":
                break
            if "=" not in line:
                raise ValueError(f"MTL line {lineno}: expected 'KEY = VALUE', got {line!r}")
            key, value = (part.strip() for part in line.split("=", 1))
            if key == "GROUP":
                group: Dict[str, Any] = {}
                stack[-1][1][value] = group
                stack.append((value, group))
            elif key == "END_GROUP":
                if len(stack) == 1 or stack[-1][0] != value:
                    raise ValueError(f"MTL line {lineno}: unbalanced END_GROUP {value}")
                stack.pop()
            else:
                stack[-1][1][key] = _parse_value(value)
        if len(stack) != 1:
            raise ValueError(f"MTL: unterminated group {stack[-1][0]}")
        return cls(root)

    def find(self, key: str, default: Any = None) -> Any:
        """Depth-first lookup of ``key`` in any group."""
        pending = [self._groups]
        while pending:
            group = pending.pop()
            if key in group and not isinstance(group[key], dict):
                return group[key]
            pending.extend(v for v in group.values() if isinstance(v, dict))
        return default

    def __getitem__(self, key: str) -> Any:
        return self._groups[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._groups)

    def __len__(self) -> int:
        return len(self._groups)

    def __repr__(self) -> str:
        return f"MTL({list(self._groups)})"
