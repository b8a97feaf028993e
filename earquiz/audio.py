SR = 44100

import io
from typing import Sequence, cast

import numpy as np
import numpy.typing as npt
import soundfile as sf

from .melody import MelodyTrainer, beat_events, round_beats
from .models import DegreeQuestion, IntervalQuestion
from .theory import Note, note_to_freq, transpose


def tone(freq: float, dur: float, waveform: str = "sine") -> npt.NDArray[np.float32]:
	"""Generate a single tone with a simple attack/release envelope.

	Args:
		freq: Frequency in Hz
		dur: Duration in seconds
		waveform: One of {"sine","triangle","saw"}
	"""
	t = np.linspace(0.0, dur, int(SR * dur), endpoint=False, dtype=np.float32)
	omega = 2.0 * np.pi * freq
	if waveform == "sine":
		x = np.sin(omega * t).astype(np.float32)
	elif waveform == "triangle":
		# 2/pi * arcsin(sin)
		x = ((2.0 / np.pi) * np.arcsin(np.sin(omega * t))).astype(np.float32)
	else:
		phase = (freq * t).astype(np.float32)
		x = (2.0 * (phase - np.floor(phase + 0.5))).astype(np.float32)

	# 5ms attack, 50ms release
	attack = min(int(0.005 * SR), len(x))
	release = min(int(0.050 * SR), len(x) - attack)
	env = np.ones_like(x, dtype=np.float32)
	if attack > 0:
		env[:attack] = np.linspace(0.0, 1.0, attack, endpoint=False, dtype=np.float32)
	if release > 0:
		env[-release:] = np.linspace(1.0, 0.0, release, endpoint=False, dtype=np.float32)

	return cast(npt.NDArray[np.float32], (x * env).astype(np.float32))


def _normalize(x: npt.NDArray[np.float32]) -> npt.NDArray[np.float32]:
	max_abs = float(np.max(np.abs(x))) if x.size else 0.0
	if max_abs > 1.0:
		x = (x / max_abs).astype(np.float32)
	return x


def _place(buf: npt.NDArray[np.float32], x: npt.NDArray[np.float32], start: float) -> None:
	i = int(SR * start)
	if i >= len(buf):
		return
	n = min(len(x), len(buf) - i)
	buf[i:i + n] += x[:n]


def sequence(notes: Sequence[Note], dur: float = 0.60, gap: float = 0.10, waveform: str = "sine") -> npt.NDArray[np.float32]:
	gap_samples = np.zeros(int(SR * gap), dtype=np.float32)
	parts = []
	for i, n in enumerate(notes):
		if i:
			parts.append(gap_samples)
		parts.append(tone(note_to_freq(n), dur, waveform))
	if not parts:
		return np.zeros(0, dtype=np.float32)
	return np.concatenate(parts)


def chord(notes: Sequence[Note], dur: float = 1.0, waveform: str = "sine") -> npt.NDArray[np.float32]:
	x = np.zeros(int(SR * dur), dtype=np.float32)
	for n in notes:
		x += tone(note_to_freq(n), dur, waveform)
	max_abs = float(np.max(np.abs(x))) if x.size else 1.0
	if max_abs > 0.0:
		x = (x / max_abs).astype(np.float32)
	return x


def interval_clip(q: IntervalQuestion, octave: int = 4, waveform: str = "sine") -> npt.NDArray[np.float32]:
	start = Note(q.note, octave)
	return sequence([start, transpose(start, q.interval_type.semitones, q.direction)], waveform=waveform)


def degree_clip(q: DegreeQuestion, onset: float = 3.0, dur: float = 6.0, waveform: str = "sine") -> npt.NDArray[np.float32]:
	"""Tonic held for the whole clip with the degree entering at ``onset``."""
	buf = np.zeros(int(SR * dur), dtype=np.float32)
	_place(buf, 0.5 * tone(note_to_freq(q.tonic), dur, waveform), 0.0)
	_place(buf, 0.5 * tone(note_to_freq(q.target), dur - onset, waveform), onset)
	return _normalize(buf)


def melody_clip(trainer: MelodyTrainer, waveform: str = "sine") -> npt.NDArray[np.float32]:
	"""One pass of the round's melody over its progression at the trainer's tempo."""
	beat = 60.0 / trainer.bpm
	n_beats = round_beats()
	buf = np.zeros(int(SR * beat * (n_beats + 1)), dtype=np.float32)
	melody = trainer.melody_notes()
	voicings = trainer.chord_voicings()
	if trainer.accompaniment == "drone":
		_place(buf, 0.3 * tone(note_to_freq(trainer.drone_note()), beat * n_beats, waveform), 0.0)
	for b in range(n_beats):
		ev = beat_events(trainer.round.progression, b)
		at = b * beat
		notes = voicings[ev.chord_slot]
		if trainer.accompaniment == "arpeggio":
			step = beat / 3.0
			for i, n in enumerate(notes):
				_place(buf, 0.3 * tone(note_to_freq(n), step, waveform), at + i * step)
		elif trainer.accompaniment == "harmonic":
			_place(buf, 0.3 * chord(notes, beat * 0.8, waveform), at)
		if ev.melody_slot is not None:
			_place(buf, 0.6 * tone(note_to_freq(melody[ev.melody_slot]), beat * 0.8, waveform), at)
	return _normalize(buf)


def wav_bytes(x: npt.NDArray[np.float32]) -> bytes:
	buf = io.BytesIO()
	sf.write(buf, x, SR, format="WAV")
	return buf.getvalue()
