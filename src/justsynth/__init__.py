"""
justsynth - polyphonic just-intonation tuning core for MIDI synthesizers.

Copyright (c) 2026 justsynth contributors

MIT License
"""

from justsynth.config import (
    ErrorMode,
    SynthSettings,
    set_error_mode,
    get_error_mode,
    handle_error,
)
from justsynth.intervals import (
    JUST_RATIOS,
    ratio_for,
    ratio_value,
    just_frequency,
    equal_temperament_frequency,
    cents_deviation,
    octave_reduce,
    interval_name,
    ratio_string,
    note_name,
)
from justsynth.voice import (
    Voice,
    VoiceState,
    VoiceOutput,
    NullVoiceOutput,
    LoggingVoiceOutput,
    RetuneMode,
)
from justsynth.voice_pool import VoicePool, Allocation
from justsynth.reference import (
    ReferenceMode,
    ReferenceMemory,
    ReferenceSelector,
    LowestNoteSelector,
    StickyRandomSelector,
    HarmonicCenterSelector,
    make_selector,
    parse_reference_mode,
)
from justsynth.retune import RetuneEngine, RetunedNote, parse_retune_mode
from justsynth.sustain import SustainController
from justsynth.synth_core import (
    SynthCore,
    SynthState,
    NoteOnResult,
    IntervalInfo,
    ActiveNote,
)
from justsynth.logger import set_global_logging, get_logger

__version__ = "0.1.0"

# mido is only needed for live MIDI input; load it on first access
_lazy_imports = {
    "MidiDispatcher": ("justsynth.midi_input", "MidiDispatcher"),
    "MidiInput": ("justsynth.midi_input", "MidiInput"),
}


def __getattr__(name):
    if name in _lazy_imports:
        module_name, attr_name = _lazy_imports[name]
        import importlib
        module = importlib.import_module(module_name)
        return getattr(module, attr_name)
    raise AttributeError(f"module 'justsynth' has no attribute {name!r}")


__all__ = [
    # Configuration
    "ErrorMode",
    "SynthSettings",
    "set_error_mode",
    "get_error_mode",
    "handle_error",
    # Intervals
    "JUST_RATIOS",
    "ratio_for",
    "ratio_value",
    "just_frequency",
    "equal_temperament_frequency",
    "cents_deviation",
    "octave_reduce",
    "interval_name",
    "ratio_string",
    "note_name",
    # Voices
    "Voice",
    "VoiceState",
    "VoiceOutput",
    "NullVoiceOutput",
    "LoggingVoiceOutput",
    "VoicePool",
    "Allocation",
    # Reference selection and retuning
    "ReferenceMode",
    "ReferenceMemory",
    "ReferenceSelector",
    "LowestNoteSelector",
    "StickyRandomSelector",
    "HarmonicCenterSelector",
    "make_selector",
    "parse_reference_mode",
    "RetuneMode",
    "RetuneEngine",
    "RetunedNote",
    "parse_retune_mode",
    "SustainController",
    # Core
    "SynthCore",
    "SynthState",
    "NoteOnResult",
    "IntervalInfo",
    "ActiveNote",
    # MIDI
    "MidiDispatcher",
    "MidiInput",
    # Logging
    "set_global_logging",
    "get_logger",
]
