"""Download helpers: fetch model and runtime files into a directory when absent."""

from __future__ import annotations

import logging
import os
from pathlib import Path

import requests

from ..errors import DownloadError
from .platforms import onnxruntime_url
from .resolve import resolve_onnxruntime_lib

logger = logging.getLogger(__name__)

URL_SILERO_VAD = "https://github.com/snakers4/silero-vad/raw/refs/heads/master/src/silero_vad/data/silero_vad.onnx"
URL_SMART_TURN = "https://huggingface.co/pipecat-ai/smart-turn-v3/resolve/main/smart-turn-v3.2-cpu.onnx"
SILERO_VAD_NAME = "silero_vad.onnx"
SMART_TURN_NAME = "smart-turn-v3.2-cpu.onnx"

DOWNLOAD_TIMEOUT_S = 30
_CHUNK_BYTES = 1 << 16


def download_file(url: str, dest_dir, dest_name: str) -> Path:
    """
    Fetch `url` into `dest_dir/dest_name` unless that file already exists.

    The body is written to `<dest_name>.tmp` and renamed into place, so a
    failed transfer never leaves a file under the final name.
    """
    path = Path(dest_dir) / dest_name
    if path.exists():
        return path
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise DownloadError(f"mkdir {path.parent}: {e}") from e

    logger.info(f"Downloading {url} -> {path}")
    try:
        response = requests.get(url, stream=True, timeout=DOWNLOAD_TIMEOUT_S)
    except requests.RequestException as e:
        raise DownloadError(f"GET {url}: {e}") from e

    tmp_path = path.with_name(path.name + ".tmp")
    try:
        if response.status_code != 200:
            raise DownloadError(f"GET {url}: {response.status_code} {response.reason}")
        written = 0
        with open(tmp_path, "wb") as f:
            for block in response.iter_content(chunk_size=_CHUNK_BYTES):
                if block:
                    f.write(block)
                    written += len(block)
        if written == 0:
            raise DownloadError(f"empty response from {url}")
        os.replace(tmp_path, path)
    except (OSError, requests.RequestException) as e:
        raise DownloadError(f"write {tmp_path}: {e}") from e
    finally:
        response.close()
        if tmp_path.exists():
            tmp_path.unlink()

    logger.info(f"Downloaded {written} bytes to {path}")
    return path


def resolve_silero_vad(directory) -> Path:
    """Ensure silero_vad.onnx exists in `directory`; return its absolute path."""
    return download_file(URL_SILERO_VAD, directory, SILERO_VAD_NAME).resolve()


def resolve_smart_turn(directory) -> Path:
    """Ensure smart-turn-v3.2-cpu.onnx exists in `directory`; return its absolute path."""
    return download_file(URL_SMART_TURN, directory, SMART_TURN_NAME).resolve()


def resolve_onnxruntime_lib_with_download(directory) -> str:
    """
    Ensure the ONNX Runtime shared library for this platform exists in
    `directory`, downloading it if a URL is known. Platforms without a URL
    fall back to `resolve_onnxruntime_lib()`; "" means nothing was found.
    """
    url = onnxruntime_url()
    if not url:
        logger.info("No ONNX Runtime download for this platform; scanning bundle locations")
        return resolve_onnxruntime_lib()
    name = url.rsplit("/", 1)[-1]
    return str(download_file(url, directory, name).resolve())
