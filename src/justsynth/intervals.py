"""
Just-intonation interval table and pitch conversions.

Maps a signed semitone interval to an exact 5-limit frequency ratio, names
intervals and notes, and provides the equal-temperament fallback used when
no reference note is available.

Copyright (c) 2026 justsynth contributors

MIT License
"""

from __future__ import annotations

from fractions import Fraction

import numpy as np
from numpy.typing import ArrayLike

SEMITONES_PER_OCTAVE = 12

# 5-limit just intonation, one entry per semitone from unison to octave
JUST_RATIOS: dict[int, tuple[int, int]] = {
    0: (1, 1),      # Unison
    1: (16, 15),    # Minor second
    2: (9, 8),      # Major second
    3: (6, 5),      # Minor third
    4: (5, 4),      # Major third
    5: (4, 3),      # Perfect fourth
    6: (45, 32),    # Tritone
    7: (3, 2),      # Perfect fifth
    8: (8, 5),      # Minor sixth
    9: (5, 3),      # Major sixth
    10: (9, 5),     # Minor seventh
    11: (15, 8),    # Major seventh
    12: (2, 1),     # Octave
}

INTERVAL_NAMES = (
    "Unison",
    "Minor 2nd",
    "Major 2nd",
    "Minor 3rd",
    "Major 3rd",
    "Perfect 4th",
    "Tritone",
    "Perfect 5th",
    "Minor 6th",
    "Major 6th",
    "Minor 7th",
    "Major 7th",
    "Octave",
)

NOTE_NAMES = ("C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B")

A4_NOTE = 69
A4_FREQUENCY = 440.0


def octave_reduce(interval: int) -> tuple[int, int]:
    """
    Split an interval into whole octaves and a scale degree.

    Works on the absolute value, so the sign of the interval is dropped.

    Returns:
        (octaves, degree) with 0 <= degree < 12
    """
    return divmod(abs(int(interval)), SEMITONES_PER_OCTAVE)


def ratio_fraction(interval: int) -> Fraction:
    """Exact just-intonation ratio for a signed semitone interval."""
    octaves, degree = octave_reduce(interval)
    num, den = JUST_RATIOS[degree]
    ratio = Fraction(num, den) * (2 ** octaves)
    if interval < 0:
        ratio = 1 / ratio
    return ratio


def ratio_for(interval: int) -> tuple[int, int]:
    """
    Just-intonation ratio for a signed semitone interval.

    Intervals larger than an octave are folded: degree = |i| mod 12 and
    the table ratio is multiplied by 2 ** (|i| div 12). Negative intervals
    invert the ratio.

    Example:
        >>> ratio_for(7)
        (3, 2)
        >>> ratio_for(19)
        (3, 1)
        >>> ratio_for(-4)
        (4, 5)
    """
    ratio = ratio_fraction(interval)
    return ratio.numerator, ratio.denominator


def ratio_value(interval: int) -> float:
    """ratio_for() as a float."""
    return float(ratio_fraction(interval))


def just_frequency(reference_freq: float, reference_note: int, target_note: int) -> float:
    """
    Frequency of target_note tuned as a pure interval above/below a reference.

    Args:
        reference_freq: Sounding frequency of the reference note in Hz
        reference_note: Note number of the reference
        target_note: Note number to tune

    Returns:
        Frequency in Hz
    """
    octaves, degree = octave_reduce(target_note - reference_note)
    num, den = JUST_RATIOS[degree]
    ratio = (num / den) * (2.0 ** octaves)
    if target_note < reference_note:
        ratio = 1.0 / ratio
    return reference_freq * ratio


def equal_temperament_frequency(
    note: ArrayLike,
    reference_freq: float = A4_FREQUENCY,
) -> np.ndarray:
    """
    Convert note number(s) to 12-ET frequency anchored at A4 (note 69).

    Example:
        >>> equal_temperament_frequency(69)
        440.0
        >>> equal_temperament_frequency(60)
        261.6255653...
    """
    note = np.asarray(note, dtype=np.float64)
    return reference_freq * (2.0 ** ((note - A4_NOTE) / SEMITONES_PER_OCTAVE))


def cents_deviation(actual: ArrayLike, reference: ArrayLike) -> np.ndarray:
    """
    Pitch difference in cents between two frequencies.

    Positive when actual is sharp of reference. 100 cents is one 12-ET
    semitone.

    Example:
        >>> cents_deviation(392.4384, 391.9954)  # just vs. tempered G4
        1.955...
    """
    actual = np.maximum(np.asarray(actual, dtype=np.float64), 1e-10)
    reference = np.maximum(np.asarray(reference, dtype=np.float64), 1e-10)
    return 1200.0 * np.log2(actual / reference)


def ratio_string(interval: int) -> str:
    """Ratio of the octave-reduced interval, e.g. '3:2' for 7 or 19."""
    _, degree = octave_reduce(interval)
    num, den = JUST_RATIOS[degree]
    return f"{num}:{den}"


def interval_name(interval: int) -> str:
    """
    Human-readable interval name.

    Example:
        >>> interval_name(7)
        'Perfect 5th'
        >>> interval_name(-16)
        'Major 3rd + 1 octave (descending)'
    """
    octaves, degree = octave_reduce(interval)
    name = INTERVAL_NAMES[degree]
    if octaves > 0:
        name += f" + {octaves} octave{'s' if octaves > 1 else ''}"
    if interval < 0:
        name += " (descending)"
    return name


def note_name(note: int) -> str:
    """Scientific pitch name of a note number, e.g. 60 -> 'C4'."""
    octave = note // SEMITONES_PER_OCTAVE - 1
    return f"{NOTE_NAMES[note % SEMITONES_PER_OCTAVE]}{octave}"
