"""Locate an ONNX Runtime shared library bundled with the application."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import List

from .platforms import bundled_lib_names, data_dir_lib_name, platform_tag

logger = logging.getLogger(__name__)

# e.g. lib/darwin_arm64/libonnxruntime.dylib
BUNDLED_LIB_DIR = "lib"
# e.g. data/onnxruntime_arm64.dylib
DATA_DIR = "data"
# Where the download helpers put models and the runtime
MODELS_DIR = "models"


def candidate_base_dirs() -> List[Path]:
    """Current working directory, then the running program's directory."""
    cwd = Path.cwd()
    try:
        exe_dir = Path(sys.argv[0]).resolve().parent if sys.argv and sys.argv[0] else None
    except OSError:
        exe_dir = None
    if exe_dir is None or exe_dir == cwd:
        return [cwd]
    return [cwd, exe_dir]


def resolve_onnxruntime_lib() -> str:
    """
    Return the first bundled library found: data/ with the platform-tagged
    name, then lib/<os>_<arch>/ with standard names. Returns "" when nothing
    is found so the caller can fall back to a system library or an
    environment override.
    """
    bases = candidate_base_dirs()
    data_name = data_dir_lib_name()
    for base in bases:
        path = base / DATA_DIR / data_name
        if path.exists():
            logger.debug(f"Found bundled ONNX Runtime at {path}")
            return str(path)

    tag = platform_tag()
    for base in bases:
        for name in bundled_lib_names():
            path = base / BUNDLED_LIB_DIR / tag / name
            if path.exists():
                logger.debug(f"Found bundled ONNX Runtime at {path}")
                return str(path)
    return ""
