from __future__ import annotations
import os
from pathlib import Path
from typing import Iterable, List


def _sep() -> str:
    return ';' if os.name == 'nt' else ':'


# Defaults
_DEFAULT_SCRIPT_DIRS = [Path('.')]
_DEFAULT_MAX_CALL_DEPTH = 10000


def paths_from_env(var: str, defaults: Iterable[Path]) -> List[Path]:
    raw = os.environ.get(var)
    if not raw:
        return [Path(p) for p in defaults]
    sep = _sep()
    return [Path(p.strip()) for p in raw.split(sep) if p.strip()]


def flag_from_env(var: str) -> bool:
    raw = os.environ.get(var, '').strip().lower()
    return raw not in ('', '0', 'false', 'no', 'off')


def get_script_roots() -> List[Path]:
    return paths_from_env('CK_PATH', _DEFAULT_SCRIPT_DIRS)


def resolve_script(name: str) -> Path:
    """Find a script by name: as given first, then under each CK_PATH root."""
    p = Path(name)
    if p.is_file() or p.is_absolute():
        return p
    for root in get_script_roots():
        candidate = root / p
        if candidate.is_file():
            return candidate
    # let the caller's open() report the missing file
    return p


def get_max_call_depth() -> int:
    raw = os.environ.get('CK_MAX_CALL_DEPTH')
    if not raw:
        return _DEFAULT_MAX_CALL_DEPTH
    try:
        depth = int(raw)
    except ValueError:
        return _DEFAULT_MAX_CALL_DEPTH
    return depth if depth > 0 else _DEFAULT_MAX_CALL_DEPTH


def disasm_enabled() -> bool:
    return flag_from_env('CK_DISASM')


def trace_enabled() -> bool:
    return flag_from_env('CK_TRACE')
