"""Debug tracing for the Qt front-end.

Usage::

    from stackwavegui.log import dbg

    dbg(f"render data ready for {path}")

Nothing is printed unless ``SW_DEBUG`` is ``1`` or ``true``
(case-insensitive).  Lines go to stderr as
``[HH:MM:SS.mmm Caller] message`` where *Caller* is the calling class
(from ``self`` or ``cls``), or the module when called outside a method.
"""

from __future__ import annotations

import inspect
import os
import sys
import time

_ENABLED: bool | None = None


def _is_enabled() -> bool:
    global _ENABLED
    if _ENABLED is None:
        _ENABLED = os.environ.get("SW_DEBUG", "").strip().lower() in ("1", "true")
    return _ENABLED


def _caller_name() -> str:
    frame = inspect.currentframe()
    try:
        # _caller_name -> dbg -> caller
        caller = frame.f_back.f_back if frame and frame.f_back else None
        if caller is None:
            return "?"
        owner = caller.f_locals.get("self")
        if owner is not None:
            return type(owner).__name__
        cls = caller.f_locals.get("cls")
        if cls is not None:
            return getattr(cls, "__name__", str(cls))
        module = caller.f_globals.get("__name__", "")
        return module.rsplit(".", 1)[-1] if module else "?"
    finally:
        del frame


def dbg(msg: str) -> None:
    if not _is_enabled():
        return
    now = time.time()
    stamp = time.strftime("%H:%M:%S", time.localtime(now))
    ms = int((now % 1) * 1000)
    print(f"[{stamp}.{ms:03d} {_caller_name()}] {msg}", file=sys.stderr, flush=True)
