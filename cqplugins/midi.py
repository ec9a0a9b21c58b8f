"""Write simple melodies as MIDI, read MIDI tracks back as note text, render WAV."""

from __future__ import annotations

import io
import math
import re
import subprocess
from pathlib import Path
from typing import Iterator

import mido

TICKS_PER_QUARTER = 960
TEMPO_BPM = 72
INSTRUMENT = "Violin"
DEFAULT_TIMBRE = 40
NOTE_VELOCITY = 120
DEFAULT_OCTAVE = 5

NOTE_MAP = {
    "C": 60,
    "Db": 61,
    "D": 62,
    "Eb": 63,
    "E": 64,
    "F": 65,
    "Gb": 66,
    "G": 67,
    "Ab": 68,
    "A": 69,
    "Bb": 70,
    "B": 71,
}
_NAMES_BY_CLASS = {value % 12: key for key, value in NOTE_MAP.items()}
_INT = re.compile(r"[+-]?[0-9]+")


class MidiParseError(ValueError):
    """Raised when note text holds a character that cannot be read."""


def octave_note(base: int, octave: int) -> int:
    """MIDI note number of pitch class ``base`` in ``octave``, kept in byte range."""
    base &= 0xFF
    octave &= 0xFF
    if octave > 10:
        octave = 10
    if octave == 0:
        return base
    result = (base + 12 * octave) & 0xFF
    if result > 127:
        result -= 12
    return result


def note_name(number: int) -> str:
    """Name of the pitch class of a note number, e.g. ``Db``."""
    return _NAMES_BY_CLASS[number % 12]


def _is_letter(byte: int) -> bool:
    return ord("A") <= byte <= ord("G")


def _is_digit(byte: int) -> bool:
    return ord("0") <= byte <= ord("9")


def _letter_class(byte: int) -> int:
    return NOTE_MAP[chr(byte)] % 12


def parse_note(text: str) -> int:
    """Note number of a single answer such as ``C#6``; other characters are ignored."""
    base = 0
    level = 0
    for byte in text.replace(" ", "").encode("utf-8"):
        if _is_letter(byte):
            base = _letter_class(byte)
        elif byte == ord("b"):
            base = (base - 1) & 0xFF
        elif byte == ord("#"):
            base = (base + 1) & 0xFF
        elif _is_digit(byte):
            level = (level * 10 + byte - ord("0")) & 0xFF
    if level == 0:
        level = DEFAULT_OCTAVE
    return octave_note(base, level)


def validate_timbre(timbre: int) -> int:
    """Check that a timbre is a General MIDI program number."""
    timbre = int(timbre)
    if timbre < 0 or timbre > 127:
        raise ValueError("音色应该在0~127之间")
    return timbre


def _length_ticks(length: int) -> int:
    if length >= 0:
        return (TICKS_PER_QUARTER << length) & 0xFFFFFFFF if length < 32 else 0
    shift = -length
    if shift >= 32:
        raise MidiParseError(f"length out of range: <{length}")
    return TICKS_PER_QUARTER >> shift


def _parse_length(raw: bytes) -> int:
    text = raw.decode("ascii")
    return int(text) if _INT.fullmatch(text) else 0


def _note_events(text: str) -> Iterator[tuple[int, int, int]]:
    """Yield (delay before, note, duration) for every note in ``text``."""
    data = text.replace(" ", "").encode("utf-8")
    delay = 0
    i = 0
    while i < len(data):
        base = 0
        level = 0
        rest = False
        length_bytes = bytearray()
        while True:
            byte = data[i]
            if byte == ord("R"):
                rest = True
                i += 1
            elif _is_letter(byte):
                base = _letter_class(byte)
                i += 1
            elif byte == ord("b"):
                base = (base - 1) & 0xFF
                i += 1
            elif byte == ord("#"):
                base = (base + 1) & 0xFF
                i += 1
            elif _is_digit(byte):
                level = (level * 10 + byte - ord("0")) & 0xFF
                i += 1
            elif byte == ord("<"):
                i += 1
                while i < len(data) and (data[i] == ord("-") or _is_digit(data[i])):
                    length_bytes.append(data[i])
                    i += 1
            else:
                raise MidiParseError(f"无法解析第{i}个位置的{chr(byte)}字符")
            if i >= len(data) or _is_letter(data[i]) or data[i] == ord("R"):
                break
        ticks = _length_ticks(_parse_length(bytes(length_bytes)))
        if rest:
            delay = ticks
            continue
        if level == 0:
            level = DEFAULT_OCTAVE
        yield delay, octave_note(base, level) & 0x7F, ticks
        delay = 0


def build_midi(text: str, timbre: int = DEFAULT_TIMBRE) -> mido.MidiFile:
    """Build a one-track MIDI file from note text such as ``CCGGAAGR``.

    Letters A-G are notes, ``b`` and ``#`` flatten and sharpen, digits give
    the octave, ``R`` is a rest and ``<n`` makes the length 2**n quarters.
    """
    track = mido.MidiTrack()
    track.append(mido.MetaMessage("time_signature", numerator=4, denominator=4, time=0))
    track.append(mido.MetaMessage("set_tempo", tempo=int(mido.bpm2tempo(TEMPO_BPM)), time=0))
    track.append(mido.MetaMessage("instrument_name", name=INSTRUMENT, time=0))
    track.append(mido.Message("program_change", channel=0, program=int(timbre) & 0x7F, time=0))
    for delay, note, duration in _note_events(text):
        track.append(
            mido.Message("note_on", channel=0, note=note, velocity=NOTE_VELOCITY, time=delay)
        )
        track.append(mido.Message("note_off", channel=0, note=note, velocity=0, time=duration))
    track.append(mido.MetaMessage("end_of_track", time=0))
    midi = mido.MidiFile(type=1, ticks_per_beat=TICKS_PER_QUARTER)
    midi.tracks.append(track)
    return midi


def write_midi(text: str, path, timbre: int = DEFAULT_TIMBRE) -> Path:
    """Write ``text`` as a MIDI file at ``path`` unless that file already exists."""
    target = Path(path)
    if target.exists():
        return target
    build_midi(text, timbre).save(filename=str(target))
    return target


def _round_half_away(value: float) -> int:
    if value >= 0:
        return math.floor(value + 0.5)
    return -math.floor(-value + 0.5)


def _power(length: float) -> int | None:
    if length <= 0:
        return None
    return _round_half_away(math.log2(length))


def midi_to_text(data: bytes, track_no: int) -> str:
    """Describe one track of a MIDI file in the note text that ``build_midi`` reads."""
    midi = mido.MidiFile(file=io.BytesIO(data))
    if not 0 <= track_no < len(midi.tracks):
        return ""
    start = 0.0
    end = 0.0
    start_note = 0
    end_note = 0
    absolute = 0
    parts: list[str] = []
    for msg in midi.tracks[track_no]:
        absolute += msg.time
        if msg.is_meta:
            continue
        sounding = msg.type == "note_on" and msg.velocity > 0
        if sounding:
            start = float(absolute)
            start_note = msg.note
        if msg.type == "note_off" or (msg.type == "note_on" and msg.velocity == 0):
            end = float(absolute)
            end_note = msg.note
            if start_note == end_note:
                parts.append(note_name(msg.note))
                level = msg.note // 12
                if level != DEFAULT_OCTAVE:
                    parts.append(str(level))
                power = _power((end - start) / TICKS_PER_QUARTER)
                if power is not None and power >= -4 and power != 0:
                    parts.append(f"<{power}")
                start_note = 0
                end_note = 0
        if sounding and start > end:
            power = _power((start - end) / TICKS_PER_QUARTER)
            if power == 0:
                parts.append("R")
            elif power is not None and power >= -4:
                parts.append(f"R<{power}")
    return "".join(parts)


def render_wav(midi_path, wav_path=None) -> Path:
    """Render a MIDI file to WAV with timidity; the WAV path defaults to ``.mid`` -> ``.wav``."""
    midi_text = str(midi_path)
    target = str(wav_path) if wav_path is not None else midi_text.replace(".mid", ".wav")
    subprocess.run(["timidity", midi_text, "-Ow", "-o", target], check=True)
    return Path(target)