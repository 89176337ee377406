#!/usr/bin/env python3
import sys
from pathlib import Path

from smart_turn.config.settings import setup_logging
from smart_turn.errors import DownloadError
from smart_turn.resolver import (
    MODELS_DIR,
    resolve_onnxruntime_lib_with_download,
    resolve_silero_vad,
    resolve_smart_turn,
)


def main():
    models_dir = Path(sys.argv[1]) if len(sys.argv) > 1 else Path(MODELS_DIR)
    setup_logging("INFO")

    try:
        print(f"Silero VAD model: {resolve_silero_vad(models_dir)}")
        print(f"Smart-Turn model: {resolve_smart_turn(models_dir)}")
        lib_path = resolve_onnxruntime_lib_with_download(models_dir)
    except DownloadError as e:
        print(f"Error: {e}")
        sys.exit(1)

    if lib_path:
        print(f"ONNX Runtime library: {lib_path}")
    else:
        print("ONNX Runtime library: not found for this platform; "
              "set ONNXRUNTIME_SHARED_LIBRARY_PATH or rely on the onnxruntime wheel")


if __name__ == "__main__":
    main()
