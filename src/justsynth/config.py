"""
Configuration and error handling utilities for justsynth.

Two error policies coexist here:

- Construction-time settings (polyphony, release/glide times, bend range)
  go through handle_error(), which raises in STRICT mode and warns and
  continues in LENIENT mode.
- Mode selectors arriving on the real-time path go through coerce_enum(),
  which never raises: an unknown selector falls back to a default and
  logs a warning.

Copyright (c) 2026 justsynth contributors

MIT License
"""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from enum import Enum
from typing import Any, Mapping, Optional, Type, TypeVar

from justsynth.logger import get_logger

logger = get_logger(__name__)

E = TypeVar("E", bound=Enum)


class ErrorMode(Enum):
    """
    Error handling mode for justsynth configuration.

    STRICT: Invalid settings raise exceptions (default, fail-fast)
    LENIENT: Invalid settings become warnings and are replaced by defaults
    """
    STRICT = "strict"
    LENIENT = "lenient"


# Module-level default error mode
DEFAULT_ERROR_MODE: ErrorMode = ErrorMode.STRICT


def set_error_mode(mode: ErrorMode) -> None:
    """
    Set the default error mode for all justsynth configuration checks.

    Args:
        mode: The error mode to use
    """
    global DEFAULT_ERROR_MODE
    DEFAULT_ERROR_MODE = mode


def get_error_mode() -> ErrorMode:
    """Get the current default error mode."""
    return DEFAULT_ERROR_MODE


def handle_error(
    message: str,
    fatal: bool = False,
    error_mode: Optional[ErrorMode] = None,
    exception_class: Type[Exception] = ValueError,
) -> bool:
    """
    Handle a configuration error based on the error mode.

    In STRICT mode (or if fatal=True), raises an exception.
    In LENIENT mode (and fatal=False), logs a warning and returns True.

    Args:
        message: Error description
        fatal: If True, always raise regardless of mode
        error_mode: Override the default error mode (optional)
        exception_class: Exception type to raise (default: ValueError)

    Returns:
        True if the caller should continue with a fallback value

    Raises:
        exception_class: If in STRICT mode or fatal=True

    Example:
        if polyphony < 1:
            if handle_error(f"polyphony must be >= 1, got {polyphony}"):
                polyphony = DEFAULT_POLYPHONY
    """
    mode = error_mode if error_mode is not None else DEFAULT_ERROR_MODE

    if fatal or mode == ErrorMode.STRICT:
        raise exception_class(message)
    logger.warning(message)
    return True


def coerce_enum(
    value: Any,
    enum_class: Type[E],
    default: E,
    aliases: Optional[Mapping[str, E]] = None,
) -> E:
    """
    Resolve a mode selector to a member of enum_class without raising.

    Accepts an enum member, its string value (case-insensitive) or one of
    the given aliases. Anything else logs a warning and returns default.

    Args:
        value: Enum member or string selector
        enum_class: Target enum type
        default: Fallback member for unknown selectors
        aliases: Extra string names mapped to members

    Returns:
        The resolved member
    """
    if isinstance(value, enum_class):
        return value
    if isinstance(value, str):
        key = value.strip().lower()
        for member in enum_class:
            if isinstance(member.value, str) and member.value == key:
                return member
        if aliases and key in aliases:
            return aliases[key]
    logger.warning(
        f"Invalid {enum_class.__name__} selector {value!r}; using {default.value!r}"
    )
    return default


def clamp(value: float, low: float, high: float, what: str) -> float:
    """Clamp a controller amount into [low, high], warning if it was outside."""
    if value < low or value > high:
        clamped = min(max(value, low), high)
        logger.warning(f"{what} {value} out of range [{low}, {high}]; using {clamped}")
        return clamped
    return value


DEFAULT_POLYPHONY = 8
DEFAULT_PITCH_BEND_RANGE_CENTS = 200.0
DEFAULT_RELEASE_SECONDS = 0.3
DEFAULT_GLIDE_SECONDS = 0.2
DEFAULT_CONCERT_PITCH = 440.0


@dataclass(frozen=True)
class SynthSettings:
    """
    Settings for a SynthCore.

    Mode fields hold selectors (enum members or strings); SynthCore resolves
    them with coerce_enum() so an unknown name degrades to the default mode.

    Attributes:
        polyphony: Number of voices in the pool
        pitch_bend_range_cents: Bend at full wheel deflection
        release_seconds: Release time handed to voices on note-off
        glide_seconds: Glide duration for smooth retuning
        reference_mode: "lowest", "random" or "harmonic"
        retune_mode: "static", "smooth" or "instant"
        concert_pitch: Frequency of A4 for equal-temperament fallback
    """

    polyphony: int = DEFAULT_POLYPHONY
    pitch_bend_range_cents: float = DEFAULT_PITCH_BEND_RANGE_CENTS
    release_seconds: float = DEFAULT_RELEASE_SECONDS
    glide_seconds: float = DEFAULT_GLIDE_SECONDS
    reference_mode: Any = "lowest"
    retune_mode: Any = "static"
    concert_pitch: float = DEFAULT_CONCERT_PITCH

    @classmethod
    def from_dict(cls, values: Mapping[str, Any]) -> "SynthSettings":
        """Build settings from a mapping, ignoring (and warning about) unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            logger.warning(f"Ignoring unknown synth settings: {', '.join(unknown)}")
        return cls(**{k: v for k, v in values.items() if k in known})

    def validated(self, error_mode: Optional[ErrorMode] = None) -> "SynthSettings":
        """
        Check numeric settings.

        Returns a copy in which invalid values were replaced by defaults
        (LENIENT), or raises ValueError (STRICT).
        """
        changes: dict[str, Any] = {}

        if int(self.polyphony) < 1:
            if handle_error(
                f"polyphony must be >= 1, got {self.polyphony}", error_mode=error_mode
            ):
                changes["polyphony"] = DEFAULT_POLYPHONY
        if self.pitch_bend_range_cents <= 0:
            if handle_error(
                f"pitch_bend_range_cents must be positive, got {self.pitch_bend_range_cents}",
                error_mode=error_mode,
            ):
                changes["pitch_bend_range_cents"] = DEFAULT_PITCH_BEND_RANGE_CENTS
        if self.release_seconds < 0:
            if handle_error(
                f"release_seconds must be >= 0, got {self.release_seconds}",
                error_mode=error_mode,
            ):
                changes["release_seconds"] = DEFAULT_RELEASE_SECONDS
        if self.glide_seconds < 0:
            if handle_error(
                f"glide_seconds must be >= 0, got {self.glide_seconds}",
                error_mode=error_mode,
            ):
                changes["glide_seconds"] = DEFAULT_GLIDE_SECONDS
        if self.concert_pitch <= 0:
            if handle_error(
                f"concert_pitch must be positive, got {self.concert_pitch}",
                error_mode=error_mode,
            ):
                changes["concert_pitch"] = DEFAULT_CONCERT_PITCH

        return replace(self, **changes) if changes else self
