"""
MIDI input for SynthCore using Mido.

MidiDispatcher maps decoded mido messages onto SynthCore calls. MidiInput
opens a port with mido.open_input(callback=...); the callback runs on
Mido's input thread and only enqueues, while poll() drains the queue on
the caller's thread, so the core itself is only ever touched by one thread.

Requires: mido (pip install mido) and a backend such as python-rtmidi for
real ports.

Copyright (c) 2026 justsynth contributors

MIT License
"""

from __future__ import annotations

import queue
from typing import Callable, Optional

import mido

from justsynth.config import clamp
from justsynth.logger import get_logger
from justsynth.retune import RetunedNote
from justsynth.synth_core import SynthCore

logger = get_logger(__name__)

SUSTAIN_CC = 64
MOD_WHEEL_CC = 1
PITCHWHEEL_CENTER = 8192

# Called after each handled message with the message and what the core returned
DispatchListener = Callable[["mido.Message", object], None]


class MidiDispatcher:
    """
    Translates mido messages into SynthCore operations.

    Args:
        core: The SynthCore to drive
        channel: Only react to this channel (0-15); None for all channels
        listener: Optional callable (message, result) invoked after each
                  handled message, e.g. to drive a display
    """

    def __init__(
        self,
        core: SynthCore,
        channel: Optional[int] = None,
        listener: Optional[DispatchListener] = None,
    ):
        self._core = core
        self._channel = channel
        self._listener = listener
        self._sustain_down = False

    def handle_message(self, msg: "mido.Message"):
        """
        Apply one message to the core.

        Returns:
            NoteOnResult for note-ons, a list of RetunedNote for note-offs
            and pedal changes, None for controllers and ignored messages
        """
        if self._channel is not None and getattr(msg, "channel", self._channel) != self._channel:
            return None

        result: object = None
        if msg.type == "note_on" and msg.velocity > 0:
            result = self._core.note_on(msg.note, msg.velocity)
        elif msg.type == "note_off" or msg.type == "note_on":
            result = self._core.note_off(msg.note)
        elif msg.type == "control_change" and msg.control == SUSTAIN_CC:
            result = self._sustain(msg.value >= 64)
        elif msg.type == "control_change" and msg.control == MOD_WHEEL_CC:
            self._core.mod_wheel(msg.value / 127.0)
        elif msg.type == "pitchwheel":
            self._core.pitch_bend(pitchwheel_to_bend(msg.pitch))
        else:
            return None

        if self._listener is not None:
            self._listener(msg, result)
        return result

    def _sustain(self, down: bool) -> list[RetunedNote]:
        # Pedals chatter; only edges change state
        if down == self._sustain_down:
            return []
        self._sustain_down = down
        return self._core.sustain_down() if down else self._core.sustain_up()


def pitchwheel_to_bend(pitch: int) -> float:
    """Convert mido's pitchwheel value (-8192..8191) to a -1..1 bend amount."""
    return clamp(pitch / PITCHWHEEL_CENTER, -1.0, 1.0, "pitch wheel")


class MidiInput:
    """
    MIDI input port feeding a MidiDispatcher.

    Args:
        dispatcher: Receives the messages
        port_name: Name of the MIDI input port. If None, uses the system
                   default input.
    """

    def __init__(self, dispatcher: MidiDispatcher, port_name: Optional[str] = None):
        self._dispatcher = dispatcher
        self._port_name = port_name
        self._message_queue: queue.Queue = queue.Queue()
        self._port: Optional["mido.ports.BaseInput"] = None

    def _mido_callback(self, msg: "mido.Message") -> None:
        """Called by Mido from its input thread; put message on queue."""
        self._message_queue.put_nowait(msg)

    def open(self) -> None:
        self._port = mido.open_input(name=self._port_name, callback=self._mido_callback)
        logger.info("opened MIDI input %r", self._port.name)

    def close(self) -> None:
        if self._port is not None:
            logger.info("closing MIDI input %r", self._port.name)
            self._port.close()
            self._port = None

    def feed(self, msg: "mido.Message") -> None:
        """Enqueue a message as if it had arrived on the port."""
        self._message_queue.put_nowait(msg)

    def poll(self) -> int:
        """Dispatch every queued message; returns how many were drained."""
        count = 0
        try:
            while True:
                msg = self._message_queue.get_nowait()
                self._dispatcher.handle_message(msg)
                count += 1
        except queue.Empty:
            pass
        return count

    def __enter__(self) -> "MidiInput":
        self.open()
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def __repr__(self) -> str:
        name = repr(self._port_name) if self._port_name is not None else "default"
        return f"MidiInput(port_name={name})"


def list_input_names() -> list[str]:
    return list(mido.get_input_names())


__all__ = [
    "MidiDispatcher",
    "MidiInput",
    "list_input_names",
    "pitchwheel_to_bend",
]
