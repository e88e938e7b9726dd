# leadcapture/core/env.py
"""
Ordered-fallback lookup of environment-style values.

Values such as the booking URL can come from a file baked in at build time,
from the process environment, or from a file dropped next to the running
service. ``resolve_env`` tries each source in the order given and returns the
first definition it finds.
"""
from __future__ import annotations

import os
from pathlib import Path
from typing import Mapping, Optional, Sequence, Tuple

from dotenv import dotenv_values

EnvSource = Mapping[str, Optional[str]]


def resolve_env(key: str, default: Optional[str], sources: Sequence[EnvSource]) -> Optional[str]:
    """Return the value of ``key`` from the first source defining it, else ``default``."""
    for source in sources:
        if key in source:
            value = source[key]
            if value is not None:
                return value
    return default


def _load_env_file(path: Optional[str]) -> EnvSource:
    if not path or not Path(path).is_file():
        return {}
    return dotenv_values(path)


def default_sources(
    build_env_file: Optional[str] = None,
    runtime_env_file: Optional[str] = None,
) -> Tuple[EnvSource, ...]:
    """Build-time file, then process environment, then runtime file."""
    return (
        _load_env_file(build_env_file),
        dict(os.environ),
        _load_env_file(runtime_env_file),
    )
