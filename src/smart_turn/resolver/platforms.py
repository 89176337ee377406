"""Platform naming for bundled and downloadable ONNX Runtime libraries."""

from __future__ import annotations

import platform
from typing import List

URL_ONNXRUNTIME_BASE = "https://github.com/yalue/onnxruntime_go/raw/refs/heads/master/test_data"

_OS_NAMES = {"darwin": "darwin", "windows": "windows", "linux": "linux"}
_ARCH_NAMES = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "aarch64": "arm64",
    "arm64": "arm64",
    "i386": "386",
    "i686": "386",
}

_DOWNLOAD_URLS = {
    "windows_amd64": URL_ONNXRUNTIME_BASE + "/onnxruntime.dll",
    "darwin_amd64": URL_ONNXRUNTIME_BASE + "/onnxruntime_amd64.dylib",
    "darwin_arm64": URL_ONNXRUNTIME_BASE + "/onnxruntime_arm64.dylib",
    "linux_arm64": URL_ONNXRUNTIME_BASE + "/onnxruntime_arm64.so",
}


def current_os() -> str:
    system = platform.system().lower()
    return _OS_NAMES.get(system, system)


def current_arch() -> str:
    machine = platform.machine().lower()
    return _ARCH_NAMES.get(machine, machine)


def platform_tag() -> str:
    """e.g. "darwin_arm64", "linux_amd64"."""
    return f"{current_os()}_{current_arch()}"


def onnxruntime_url() -> str:
    """Download URL for this platform, or "" if none is published."""
    return _DOWNLOAD_URLS.get(platform_tag(), "")


def bundled_lib_names() -> List[str]:
    """Standard library names under lib/<os>_<arch>/."""
    os_name = current_os()
    if os_name == "darwin":
        return ["libonnxruntime.dylib"]
    if os_name == "windows":
        return ["onnxruntime.dll"]
    return ["libonnxruntime.so.1.23.2", "libonnxruntime.so"]


def data_dir_lib_name() -> str:
    """Platform-tagged library name under data/."""
    os_name = current_os()
    if os_name == "darwin":
        return f"onnxruntime_{current_arch()}.dylib"
    if os_name == "windows":
        return "onnxruntime.dll"
    return f"onnxruntime_{current_arch()}.so"
