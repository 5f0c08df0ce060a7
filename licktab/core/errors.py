"""Exception hierarchy for licktab."""


class LickTabError(Exception):
    """Base class for all licktab errors."""


class DecodeError(LickTabError):
    """Audio bytes could not be decoded into PCM."""


class AudioTooLongError(DecodeError):
    """Decoded audio exceeds the configured clip length."""

    def __init__(self, duration: float, limit: float):
        super().__init__(
            f"Audio is {duration:.1f}s long; the limit is {limit:.1f}s"
        )
        self.duration = duration
        self.limit = limit


class MalformedContainerError(LickTabError):
    """A WAV container is structurally invalid."""


class NoOnsetsFoundError(LickTabError):
    """The audio is valid but contains no note attacks."""


class NoPitchedNotesError(LickTabError):
    """Onsets were found but none produced a playable pitch."""


class InferenceUnavailableError(LickTabError):
    """The neural pitch model is missing or failed."""


class TranscriptionCancelledError(LickTabError):
    """The caller cancelled an in-flight computation."""
