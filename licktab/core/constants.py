"""Global constants for licktab."""

# Pitch names
PITCH_NAMES = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]

# Audio processing defaults
DEFAULT_SR = 44100
MODEL_SR = 22050
MAX_CLIP_DURATION = 15.0

# Guitar band accepted by the pitch estimator (Hz)
GUITAR_FMIN = 80.0
GUITAR_FMAX = 1200.0

# Musical defaults
DEFAULT_TEMPO = 120.0
DEFAULT_BEATS_PER_MEASURE = 4
DEFAULT_SLOTS_PER_BEAT = 4  # 16th notes
MAX_FRET = 22
