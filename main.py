import argparse
import sys
from pathlib import Path

from smart_turn import Callbacks, SmartTurnConfig, SmartTurnEngine, SmartTurnError
from smart_turn.audio.mic import Mic
from smart_turn.config.settings import create_example_env_file, load_config, setup_logging
from smart_turn.core.shutdown import GracefulShutdown
from smart_turn.resolver import (
    MODELS_DIR,
    resolve_onnxruntime_lib_with_download,
    resolve_silero_vad,
    resolve_smart_turn,
)


def build_default_config(models_dir: Path) -> SmartTurnConfig:
    """Resolve (downloading when needed) models and runtime into models_dir."""
    silero_path = resolve_silero_vad(models_dir)
    smart_turn_path = resolve_smart_turn(models_dir)
    onnx_lib_path = resolve_onnxruntime_lib_with_download(models_dir)
    if not onnx_lib_path:
        print("ONNX Runtime lib not found for this platform; using the onnxruntime wheel's bundled library")

    return SmartTurnConfig(
        sample_rate=16000,
        chunk_size=512,
        vad_threshold=0.75,
        vad_pre_speech_ms=200,
        vad_stop_ms=800,
        turn_max_duration_s=600,
        turn_segment_emit_ms=1000,
        turn_threshold=0.9,
        turn_timeout_ms=1000,
        silero_vad_model_path=str(silero_path),
        smart_turn_model_path=str(smart_turn_path),
        onnxruntime_lib_path=onnx_lib_path,
    )


def main():
    parser = argparse.ArgumentParser(description="Live speech segmentation and turn detection")
    parser.add_argument("--config", type=str, help="Path to .env config file (default: resolve models)")
    parser.add_argument("--models-dir", type=str, default=MODELS_DIR, help="Where to download models")
    parser.add_argument("--device", type=int, default=None, help="Input device index")
    parser.add_argument("--log-level", type=str, default="INFO")
    parser.add_argument("--create-config", action="store_true", help="Create example config file")

    args = parser.parse_args()
    setup_logging(args.log_level)

    if args.create_config:
        create_example_env_file()
        print("Example configuration file created at .env.example")
        return

    callbacks = Callbacks(
        on_listening_started=lambda: print("[event] listening started"),
        on_listening_stopped=lambda: print("[event] listening stopped"),
        on_speech_start=lambda: print("[event] speech start"),
        on_speech_end=lambda: print("[event] speech end"),
        on_turn_prediction=lambda complete, prob: print(f"[event] turn complete={complete} prob={prob:.3f}"),
        on_error=lambda err: print(f"[error] {err}"),
    )

    try:
        if args.config:
            cfg = load_config(Path(args.config))
        else:
            cfg = build_default_config(Path(args.models_dir))
        engine = SmartTurnEngine(cfg, callbacks)
    except SmartTurnError as e:
        print(f"Startup error: {e}", file=sys.stderr)
        sys.exit(1)

    shutdown = GracefulShutdown()
    with engine:
        engine.start()
        mic = Mic(stop_signal=shutdown, engine=engine, device=args.device)
        mic.start()
        try:
            while mic.is_alive():
                mic.join(timeout=0.5)
        except KeyboardInterrupt:
            print("\nGoodbye!")
        finally:
            shutdown.stop()
            mic.join(timeout=2.0)


if __name__ == "__main__":
    main()
