"""
Entry point for running justsynth as a module.

    python -m justsynth --list
    python -m justsynth --port "My Keyboard" --reference harmonic --retune smooth

Runs the tuning core against a MIDI input and logs every voice command.

Copyright (c) 2026 justsynth contributors

MIT License
"""

import argparse
import sys
import time

from justsynth import __version__
from justsynth.config import SynthSettings
from justsynth.logger import get_logger, set_global_logging
from justsynth.midi_input import MidiDispatcher, MidiInput, list_input_names
from justsynth.synth_core import NoteOnResult, SynthCore
from justsynth.voice import LoggingVoiceOutput

logger = get_logger("justsynth.main")

POLL_INTERVAL = 0.002


def _report(msg, result) -> None:
    if isinstance(result, NoteOnResult):
        info = result.interval_info
        via = f" {info.name} ({info.ratio}) from {info.reference_name}" if info else ""
        logger.info("%s %.3f Hz%s", result.note_name, result.frequency, via)
    elif result:
        for retuned in result:
            logger.info("retuned %d -> %.3f Hz", retuned.note, retuned.new_frequency)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="justsynth",
        description="MIDI keyboard drives the just-intonation tuning core.",
    )
    parser.add_argument("--list", action="store_true", help="List MIDI inputs and exit")
    parser.add_argument("--port", default=None, help="MIDI input name (default: system default)")
    parser.add_argument("--channel", type=int, default=None, metavar="N",
                        help="Only listen to MIDI channel N (0-15)")
    parser.add_argument("--reference", default="lowest",
                        help="Reference mode: lowest, random or harmonic")
    parser.add_argument("--retune", default="static",
                        help="Retune mode: static, smooth or instant")
    parser.add_argument("--glide", type=float, default=0.2, metavar="SECONDS",
                        help="Glide time for smooth retuning")
    parser.add_argument("--polyphony", type=int, default=8)
    parser.add_argument("--log-level", default="INFO")
    parser.add_argument("--version", action="version", version=f"justsynth {__version__}")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    set_global_logging(level=args.log_level)

    if args.list:
        for name in list_input_names():
            print(name)
        return 0

    settings = SynthSettings(
        polyphony=args.polyphony,
        glide_seconds=args.glide,
        reference_mode=args.reference,
        retune_mode=args.retune,
    )
    try:
        core = SynthCore(output=LoggingVoiceOutput(), settings=settings)
    except ValueError as e:
        print(f"Invalid settings: {e}", file=sys.stderr)
        return 1

    logger.info("justsynth v%s: %r", __version__, core)
    dispatcher = MidiDispatcher(core, channel=args.channel, listener=_report)
    try:
        with MidiInput(dispatcher, port_name=args.port) as midi_in:
            print("Play some notes; Ctrl+C to quit.")
            while True:
                midi_in.poll()
                time.sleep(POLL_INTERVAL)
    except KeyboardInterrupt:
        print("\nStopped.")
    except OSError as e:
        print(f"Cannot open MIDI input: {e}", file=sys.stderr)
        return 1
    finally:
        core.reset_reference()
    return 0


if __name__ == "__main__":
    sys.exit(main())
