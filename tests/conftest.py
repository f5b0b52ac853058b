import pytest

from justsynth import SynthCore, SynthSettings, VoiceOutput


class RecordingVoiceOutput(VoiceOutput):
    """VoiceOutput that remembers every command it receives."""

    def __init__(self):
        self.calls = []

    def start(self, slot, frequency, velocity):
        self.calls.append(("start", slot, frequency, velocity))

    def retune(self, slot, frequency, glide_seconds):
        self.calls.append(("retune", slot, frequency, glide_seconds))

    def set_frequency(self, slot, frequency):
        self.calls.append(("set_frequency", slot, frequency))

    def release(self, slot, release_seconds):
        self.calls.append(("release", slot, release_seconds))

    def stop(self, slot):
        self.calls.append(("stop", slot))

    def set_vibrato(self, slot, amount):
        self.calls.append(("set_vibrato", slot, amount))

    def of(self, kind):
        return [c for c in self.calls if c[0] == kind]


@pytest.fixture
def output():
    return RecordingVoiceOutput()


@pytest.fixture
def make_core(output):
    """Factory for a SynthCore wired to the recording output."""

    def _make(**settings):
        return SynthCore(output=output, settings=SynthSettings(**settings), seed=1234)

    return _make


@pytest.fixture
def core(make_core):
    return make_core()
