#!/usr/bin/env python3
"""
Entry point for running dictr as a module.

This allows the application to be run with:
    python -m dictr

The main() function is also used as the entry point for the console script
defined in pyproject.toml.
"""

import argparse
import logging
import queue
import signal
import sys
import threading
from typing import List, Optional

from . import __version__
from .exceptions import DictrError

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dictr",
        description="Push-to-talk voice dictation"
    )
    parser.add_argument("--backend", help='transcription backend: "local" or "api"')
    parser.add_argument("--model", help="path to a faster-whisper model directory")
    parser.add_argument("--hotkey", help="hotkey name (e.g. AltGr, F9)")
    parser.add_argument(
        "--paste",
        action="store_true",
        help="paste through the clipboard instead of typing"
    )
    parser.add_argument(
        "--list-devices",
        action="store_true",
        help="list available input devices and exit"
    )
    parser.add_argument(
        "--device",
        help="input device: index, name, or substring (see --list-devices)"
    )
    parser.add_argument("--language", help="language code for transcription (e.g. en, fr, de)")
    parser.add_argument("--api-url", help="API endpoint URL for the api backend")
    parser.add_argument(
        "--initial-prompt",
        help="initial prompt to guide transcription (e.g. technical terms)"
    )
    parser.add_argument(
        "--min-duration",
        type=int,
        metavar="MS",
        help="minimum recording duration in milliseconds (default: 300)"
    )
    parser.add_argument("--config", help="path to config.json")
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="show debug output"
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    # Reduce noise from external libraries
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("faster_whisper").setLevel(
        logging.INFO if verbose else logging.WARNING
    )


def list_devices() -> int:
    """Print input devices, one per line, with pactl names underneath."""
    from .audio import list_input_devices

    try:
        devices = list_input_devices()
    except DictrError as e:
        logger.error(f"Failed to list devices: {e}")
        return 1

    if not devices:
        print("no input devices found", file=sys.stderr)

    for i, device in enumerate(devices):
        print(f"{i}: {device}")
        if device.name != device.description:
            print(f"   {device.name}")
    return 0


def run(args: argparse.Namespace) -> int:
    from .app import AppState, DictationApp
    from .audio import AudioRecorder
    from .config import apply_cli_overrides, load_config, resolve_env
    from .hotkey import HotkeyListener
    from .input import TerminalInput
    from .postprocess import apply_replacements
    from .status import StatusFile
    from .transcription import create_backend

    try:
        config = load_config(args.config)
        apply_cli_overrides(config, args)
        resolve_env(config)

        backend = create_backend(config)
        output = TerminalInput(
            delay_ms=int(config["typing_delay_ms"]),
            paste=bool(config["paste"])
        )
        recorder = AudioRecorder(device=config["device"])
        events: "queue.Queue" = queue.Queue()
        listener = HotkeyListener(config["hotkey"], events)
        listener.start()
    except DictrError as e:
        logger.error(str(e))
        return 1

    logger.info(f"Mic ready: {recorder.device_name} ({recorder.sample_rate}Hz)")
    logger.info(f"Hold [{config['hotkey']}] to record, release to transcribe")

    status = StatusFile()
    app = DictationApp(
        recorder,
        backend,
        events,
        min_duration_ms=int(config["min_duration_ms"]),
        language=config["language"],
        initial_prompt=config["initial_prompt"],
    )

    def on_state_changed(old_state: AppState, new_state: AppState) -> None:
        status.set(new_state.value)

    def on_transcription_ready(text: str) -> None:
        text = apply_replacements(text, config["replacements"])
        logger.info(f"Output: {text!r}")
        output.send(text)

    app.on_state_changed = on_state_changed
    app.on_transcription_ready = on_transcription_ready

    stop_event = threading.Event()

    def request_stop(signum, frame) -> None:
        logger.debug(f"Received signal {signum}, shutting down")
        stop_event.set()

    signal.signal(signal.SIGINT, request_stop)
    signal.signal(signal.SIGTERM, request_stop)

    status.set(AppState.IDLE.value)
    try:
        app.run(stop_event)
    finally:
        listener.stop()
        recorder.close()
        status.remove()

    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """
    Application entry point.

    Returns:
        int: Exit code (0 for success, non-zero for errors)
    """
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)

    if args.list_devices:
        return list_devices()

    return run(args)


if __name__ == "__main__":
    sys.exit(main())
