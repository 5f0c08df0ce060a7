"""Command-line interface for licktab.

Provides commands for:
- transcribe: Convert a guitar recording to tablature
- info: Show audio file information
- synth: Render a chord progression to WAV
- mix: Combine WAV stems
- waveform: Extract display peaks
- patterns: List rhythm patterns
"""

import json
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .core import LickTabError

app = typer.Typer(
    name="licktab",
    help="Guitar tablature transcription and backing-track synthesis",
    rich_markup_mode="markdown",
)
console = Console()


@dataclass
class StageTimings:
    """Wall-clock seconds per pipeline stage, shown with -v or --json."""

    stages: Dict[str, float] = field(default_factory=dict)
    _running: Optional[str] = field(default=None, repr=False)
    _since: float = field(default=0.0, repr=False)

    def start(self, stage: str) -> None:
        self._running = stage
        self._since = time.perf_counter()

    def stop(self) -> None:
        if self._running is not None:
            self.stages[self._running] = time.perf_counter() - self._since
            self._running = None

    def to_dict(self) -> Dict[str, Any]:
        return {"stages": self.stages, "total_time": sum(self.stages.values())}


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
        force=True,
    )


def _require_file(path: Path) -> None:
    if not path.exists():
        console.print(f"[red]Error: File not found: {path}[/red]")
        raise typer.Exit(1)


@app.command()
def transcribe(
    input_file: Path = typer.Argument(..., help="Input audio file (WAV, MP3, FLAC, ...)"),
    tempo: float = typer.Option(
        0.0, "-t", "--tempo", help="Override tempo (BPM). 0 = file name hint or auto-detect"
    ),
    model: bool = typer.Option(
        False, "-m", "--model", help="Use the basic-pitch neural model (falls back if unavailable)"
    ),
    midi: Optional[Path] = typer.Option(
        None, "--midi", help="Also write the notes to this MIDI file"
    ),
    config_file: Optional[Path] = typer.Option(
        None, "-c", "--config", help="JSON configuration file"
    ),
    sensitivity: Optional[str] = typer.Option(
        None, "--sensitivity", "-s", help="Onset sensitivity preset: low/medium/high"
    ),
    max_duration: Optional[float] = typer.Option(
        None, "--max-duration", help="Longest accepted clip in seconds. 0 = unlimited"
    ),
    json_output: bool = typer.Option(
        False, "--json", help="Output results as JSON (for scripting)"
    ),
    verbose: bool = typer.Option(
        False, "-v", "--verbose", help="Verbose output"
    ),
):
    """Transcribe a guitar recording to tablature.

    **Examples:**

        licktab transcribe riff.wav

        licktab transcribe lick_96bpm.mp3 --model --midi lick.mid
    """
    from .config import TranscriptionConfig
    from .pipeline import TranscriptionPipeline
    from .output import MIDIExporter

    _setup_logging(verbose)
    _require_file(input_file)
    timings = StageTimings()

    try:
        config = TranscriptionConfig.from_file(str(config_file)) if config_file else TranscriptionConfig()
        if sensitivity is not None:
            config = config.with_sensitivity(sensitivity)
    except (OSError, ValueError) as e:
        console.print(f"[red]Error: Invalid configuration: {e}[/red]")
        raise typer.Exit(1)
    if max_duration is not None:
        config.max_duration = max_duration if max_duration > 0 else None
    config.use_model = config.use_model or model

    pitch_model = None
    if config.use_model:
        from .transcription import BasicPitchModel

        timings.start("Model load")
        try:
            pitch_model = BasicPitchModel(config.model)
        except LickTabError as e:
            if not json_output:
                console.print(f"[yellow]Warning: {e}. Using the signal-processing path.[/yellow]")
        timings.stop()

    pipeline = TranscriptionPipeline(config, model=pitch_model)

    if not json_output:
        console.print(f"[blue]Transcribing:[/blue] {input_file}")

    try:
        timings.start("Transcription")
        result = pipeline.transcribe_file(input_file, tempo=tempo or None)
        timings.stop()
    except LickTabError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    if midi is not None and result.notes:
        MIDIExporter(tempo=result.tempo.bpm).export_tab(result.notes, str(midi))

    if json_output:
        data = result.to_dict()
        data["input"] = str(input_file)
        data["timings"] = timings.to_dict()
        console.print_json(data=data)
        return

    if not result.ok:
        console.print(f"[yellow]{result.message}[/yellow]")
        return

    console.print(f"  Path: {result.path.value}" + (
        f" [yellow](fallback: {result.fallback_reason})[/yellow]" if result.fallback_reason else ""
    ))
    console.print(f"  Tempo: {result.tempo.bpm:.0f} BPM ({result.tempo.source})")
    console.print(f"  Key: {result.key.name}")
    console.print(f"  Notes placed: {result.placed}, dropped: {result.dropped}")
    console.print(f"  Confidence: {result.confidence:.0f}%\n")
    console.print(result.tab, highlight=False, markup=False)

    if verbose:
        _show_notes_table(result.notes)
        for stage, seconds in timings.stages.items():
            console.print(f"  {stage}: {seconds:.2f}s")
    if midi is not None:
        console.print(f"[green]MIDI written to {midi}[/green]")


@app.command()
def info(
    input_file: Path = typer.Argument(..., help="Input audio file"),
):
    """Show information about an audio file."""
    from .input import AudioLoader
    from .analysis import TempoEstimator, bpm_from_filename
    from .inference import KeyEstimator

    _require_file(input_file)

    loader = AudioLoader(max_duration=None)
    try:
        pcm = loader.load(str(input_file))
    except LickTabError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    console.print(f"\n[bold]Audio Info:[/bold] {input_file.name}")
    console.print(f"  Duration: {pcm.duration:.2f} seconds")
    console.print(f"  Sample rate: {pcm.sample_rate} Hz")
    console.print(f"  Samples: {pcm.frames:,}")

    hinted = bpm_from_filename(input_file.name)
    if hinted is not None:
        console.print(f"  Tempo from file name: {hinted:.0f} BPM")
    tempo_info = TempoEstimator().analyze(pcm.samples, pcm.sample_rate)
    console.print(f"  Estimated tempo: {tempo_info.bpm:.0f} BPM ({tempo_info.source})")

    key_info = KeyEstimator().analyze(pcm.samples, pcm.sample_rate)
    console.print(f"  Estimated key: {key_info.name} (confidence: {key_info.confidence:.2f})")


@app.command()
def synth(
    chords: List[str] = typer.Argument(..., help="Chord names, e.g. C Am F G"),
    output: Path = typer.Option(..., "-o", "--output", help="Output WAV file path"),
    tempo: float = typer.Option(120.0, "-t", "--tempo", help="Tempo (BPM)"),
    beats: float = typer.Option(4.0, "-b", "--beats", help="Beats per chord"),
    pattern: Optional[str] = typer.Option(
        None, "-p", "--pattern", help="Rhythm pattern id (see `licktab patterns`)"
    ),
    program: int = typer.Option(0, "--program", help="General MIDI program selecting the waveform"),
    volume: float = typer.Option(1.0, "--volume", help="Volume multiplier"),
    midi: Optional[Path] = typer.Option(None, "--midi", help="Also write the chord schedule as MIDI"),
):
    """Render a chord progression to a WAV backing track.

    **Example:**

        licktab synth C Am F G -t 96 -p bossa -o backing.wav
    """
    from .pipeline import BackingTrackRenderer
    from .synthesis import ChordSpec, SynthConfig
    from .output import MIDIExporter

    try:
        specs = [ChordSpec(chord_name=name, beats=beats) for name in chords]
        renderer = BackingTrackRenderer(SynthConfig(instrument_program=program, volume=volume))
        data = renderer.render(specs, tempo, pattern)
    except (KeyError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_bytes(data)
    console.print(f"[green]Wrote {output}[/green] ({len(specs)} chords at {tempo:.0f} BPM)")

    if midi is not None:
        synthesizer = renderer.synthesizer
        notes = synthesizer.to_midi_notes(synthesizer.schedule(specs, tempo, pattern))
        MIDIExporter(tempo=tempo, instrument_name="Backing", instrument_program=program).export(notes, str(midi))
        console.print(f"[green]Wrote {midi}[/green]")


@app.command()
def mix(
    inputs: List[Path] = typer.Argument(..., help="WAV stems to combine"),
    output: Path = typer.Option(..., "-o", "--output", help="Output WAV file path"),
    mode: str = typer.Option("overlay", "--mode", help="overlay or sequential"),
    gain: Optional[List[float]] = typer.Option(None, "--gain", help="Per-stem gain, in input order"),
    tempo: float = typer.Option(120.0, "-t", "--tempo", help="Tempo for sequential slots (BPM)"),
    beats: float = typer.Option(4.0, "-b", "--beats", help="Beats per sequential slot"),
):
    """Mix WAV stems into one stereo file."""
    from .output import WavCodec
    from .synthesis import AudioMixer, MixMode, MixSource

    gains = list(gain or [])
    if gains and len(gains) != len(inputs):
        console.print(f"[red]Error: got {len(gains)} gains for {len(inputs)} inputs[/red]")
        raise typer.Exit(1)

    sources = []
    for i, path in enumerate(inputs):
        _require_file(path)
        try:
            pcm = WavCodec.parse(path.read_bytes())
        except LickTabError as e:
            console.print(f"[red]Error: {path}: {e}[/red]")
            raise typer.Exit(1)
        sources.append(MixSource(pcm, gain=gains[i] if gains else 1.0, label=path.name))

    try:
        mixed = AudioMixer().mix(sources, MixMode(mode), tempo=tempo, beats_per_slot=beats)
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_bytes(WavCodec.serialize(mixed))
    console.print(f"[green]Wrote {output}[/green] ({mixed.duration:.2f}s, {mixed.sample_rate} Hz)")


@app.command()
def waveform(
    input_file: Path = typer.Argument(..., help="Input audio file"),
    buckets: int = typer.Option(369, "-n", "--buckets", help="Number of peak values"),
    json_output: bool = typer.Option(False, "--json", help="Output results as JSON"),
):
    """Extract waveform peaks for display."""
    from .analysis import extract_peaks
    from .input import AudioLoader

    _require_file(input_file)
    try:
        pcm = AudioLoader(max_duration=None).load_pcm(str(input_file))
        peaks = extract_peaks(pcm, buckets)
    except (LickTabError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    values = [round(float(p), 4) for p in peaks]
    if json_output:
        console.print_json(data={"input": str(input_file), "peaks": values})
    else:
        console.print(json.dumps(values))


@app.command()
def patterns():
    """List available rhythm patterns."""
    from .synthesis import PatternRegistry

    table = Table(title="Rhythm Patterns")
    table.add_column("Id", style="cyan")
    table.add_column("Type", style="green")
    table.add_column("Events", style="yellow")
    table.add_column("Description")

    for pattern in PatternRegistry():
        table.add_row(
            pattern.name,
            pattern.pattern_type.value,
            str(len(pattern.events)),
            pattern.description,
        )

    console.print(table)


def _show_notes_table(notes):
    """Display notes in a table."""
    table = Table(title="Detected Notes")
    table.add_column("Time (s)", style="green")
    table.add_column("Pitch", style="cyan")
    table.add_column("String", style="yellow")
    table.add_column("Fret", style="yellow")
    table.add_column("Velocity", style="magenta")
    table.add_column("Articulation")

    for note in notes:
        articulation = ""
        if note.bend_semitones:
            articulation = f"bend +{note.bend_semitones}"
        elif note.has_vibrato:
            articulation = "vibrato"
        table.add_row(
            f"{note.time:.3f}",
            note.pitch_name,
            note.string,
            str(note.fret),
            f"{note.velocity:.2f}",
            articulation,
        )

    console.print(table)


def main():
    """Entry point."""
    app()


if __name__ == "__main__":
    main()
