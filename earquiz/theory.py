from __future__ import annotations

import re
from typing import List, NamedTuple, Sequence, Tuple


class UnknownPitchName(KeyError):
	pass


class UnknownCatalogIndex(IndexError):
	pass


class EmptySelectionError(ValueError):
	pass


NOTE_NAMES = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]
NOTE_LABELS = ["C", "C#/Db", "D", "D#/Eb", "E", "F", "F#/Gb", "G", "G#/Ab", "A", "A#/Bb", "B"]

A4_MIDI = 69
A4_FREQ = 440.0

ASCENDING = "ascending"
DESCENDING = "descending"
DIRECTIONS = (ASCENDING, DESCENDING)


class IntervalType(NamedTuple):
	name: str
	semitones: int


class ScaleDegree(NamedTuple):
	label: str
	semitones: int


class ChordQuality(NamedTuple):
	name: str
	offsets: Tuple[int, int, int]


INTERVALS: Tuple[IntervalType, ...] = (
	IntervalType("minor 2nd", 1),
	IntervalType("major 2nd", 2),
	IntervalType("minor 3rd", 3),
	IntervalType("major 3rd", 4),
	IntervalType("perfect 4th", 5),
	IntervalType("tritone", 6),
	IntervalType("perfect 5th", 7),
	IntervalType("minor 6th", 8),
	IntervalType("major 6th", 9),
	IntervalType("minor 7th", 10),
	IntervalType("major 7th", 11),
	IntervalType("octave", 12),
)

SCALE_DEGREES: Tuple[ScaleDegree, ...] = (
	ScaleDegree("1", 0),
	ScaleDegree("b2", 1),
	ScaleDegree("2", 2),
	ScaleDegree("b3", 3),
	ScaleDegree("3", 4),
	ScaleDegree("4", 5),
	ScaleDegree("b5", 6),
	ScaleDegree("5", 7),
	ScaleDegree("b6", 8),
	ScaleDegree("6", 9),
	ScaleDegree("b7", 10),
	ScaleDegree("7", 11),
)

# Upper voices above 11 are voiced in the next octave up, not folded back.
CHORDS: Tuple[ChordQuality, ...] = (
	ChordQuality("I", (0, 4, 7)),
	ChordQuality("ii", (2, 5, 9)),
	ChordQuality("iii", (4, 7, 11)),
	ChordQuality("IV", (5, 9, 12)),
	ChordQuality("V", (7, 11, 14)),
	ChordQuality("vi", (9, 12, 16)),
	ChordQuality("vii°", (11, 14, 17)),
)

TONIC_CHORD = 0


class Note(NamedTuple):
	pitch_class: int
	octave: int = 4

	@property
	def name(self) -> str:
		return f"{NOTE_NAMES[self.pitch_class]}{self.octave}"

	@property
	def midi(self) -> int:
		# C4 = 60
		return (self.octave + 1) * 12 + self.pitch_class


TONICS: Tuple[Note, ...] = tuple(Note(pc, 2) for pc in (0, 2, 4, 5, 7, 9, 11))
KEYS: Tuple[Note, ...] = tuple(Note(pc, 4) for pc in range(12))

_NOTE_RE = re.compile(r"^([A-G]#?)(-?\d+)$")


def pitch_class_index(name: str) -> int:
	try:
		return NOTE_NAMES.index(name)
	except ValueError:
		raise UnknownPitchName(name) from None


def name_of(pitch_class: int) -> str:
	if not 0 <= pitch_class < len(NOTE_NAMES):
		raise UnknownCatalogIndex(pitch_class)
	return NOTE_NAMES[pitch_class]


def parse_note(text: str) -> Note:
	"""Parse a rendered note name such as ``"C#4"``."""
	match = _NOTE_RE.match(text)
	if not match:
		raise UnknownPitchName(text)
	return Note(pitch_class_index(match.group(1)), int(match.group(2)))


def transpose(note: Note, semitones: int, direction: str = ASCENDING) -> Note:
	"""Move a note by ``semitones`` up or down, carrying octave wraps."""
	if direction not in DIRECTIONS:
		raise ValueError(f"unknown direction {direction!r}")
	step = -semitones if direction == DESCENDING else semitones
	octaves, pitch_class = divmod(note.pitch_class + step, 12)
	return Note(pitch_class, note.octave + octaves)


def interval_index(name: str) -> int:
	for i, interval in enumerate(INTERVALS):
		if interval.name == name:
			return i
	raise UnknownCatalogIndex(name)


def degree_index(label: str) -> int:
	for i, degree in enumerate(SCALE_DEGREES):
		if degree.label == label:
			return i
	raise UnknownCatalogIndex(label)


def catalog_entry(catalog: Sequence, index: int):
	if not 0 <= index < len(catalog):
		raise UnknownCatalogIndex(index)
	return catalog[index]


def degree_note(key: Note, degree: ScaleDegree, octave: int) -> Note:
	"""Melody note for ``degree`` in ``key``; the octave is taken as given."""
	return Note((key.pitch_class + degree.semitones) % 12, octave)


def chord_notes(key: Note, chord: ChordQuality, octave: int = 2) -> List[Note]:
	root = Note(key.pitch_class, octave)
	return [transpose(root, offset) for offset in chord.offsets]


def midi_to_freq(m: int) -> float:
	return float(A4_FREQ * (2.0 ** ((m - A4_MIDI) / 12.0)))


def note_to_freq(note: Note) -> float:
	return midi_to_freq(note.midi)
