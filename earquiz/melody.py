from __future__ import annotations

import logging
import random
from typing import List, NamedTuple, Optional, Sequence, Tuple

from pydantic import BaseModel, Field

from .models import MELODY_LENGTH, PROGRESSION_LENGTH, Accompaniment, EnabledSet, MelodyNote, MelodySettings
from .theory import (
	CHORDS,
	KEYS,
	SCALE_DEGREES,
	TONIC_CHORD,
	EmptySelectionError,
	Note,
	UnknownCatalogIndex,
	catalog_entry,
	chord_notes,
	degree_index,
	degree_note,
	parse_note,
)

logger = logging.getLogger(__name__)

JUMPS = (-4, -3, -2, -1, 1, 2, 3, 4)
START_OCTAVE = 4
MIN_OCTAVE = 3
MAX_OCTAVE = 5
CHORD_OCTAVE = 2
BEATS_PER_MEASURE = 4
MELODY_BEATS = (1, 3)
MIN_BPM = 40
MAX_BPM = 240


def generate_melody(enabled: Sequence[int], rng: Optional[random.Random] = None, length: int = MELODY_LENGTH) -> List[MelodyNote]:
	"""Random walk over the enabled degrees in steps of at most four.

	Wrapping past the top of the enabled list moves up an octave, wrapping
	past the bottom moves down one; the octave is held within [3, 5].
	"""
	if not enabled:
		raise EmptySelectionError("no scale degrees enabled")
	r = rng if rng is not None else random
	degrees = sorted(enabled)
	k = len(degrees)
	idx = r.randrange(k)
	octave = START_OCTAVE
	melody: List[MelodyNote] = []
	while len(melody) < length:
		# every wrapped index lands on an enabled degree, so all jumps are candidates
		jump = r.choice(JUMPS)
		new_idx = (idx + jump) % k
		if jump > 0 and new_idx < idx:
			octave += 1
		elif jump < 0 and new_idx > idx:
			octave -= 1
		octave = min(max(octave, MIN_OCTAVE), MAX_OCTAVE)
		melody.append(MelodyNote(degree=degrees[new_idx], octave=octave))
		idx = new_idx
	return melody


def generate_progression(enabled: Sequence[int], rng: Optional[random.Random] = None) -> List[int]:
	"""Tonic chord first, then three enabled chords drawn with replacement."""
	if not enabled:
		raise EmptySelectionError("no chords enabled")
	r = rng if rng is not None else random
	allowed = list(enabled)
	return [TONIC_CHORD] + [r.choice(allowed) for _ in range(PROGRESSION_LENGTH - 1)]


class MelodyRound(BaseModel):
	melody: List[MelodyNote]
	progression: List[int]
	melody_guesses: List[Optional[str]] = Field(default_factory=lambda: [None] * MELODY_LENGTH)
	chord_guesses: List[Optional[int]] = Field(default_factory=lambda: [None] * PROGRESSION_LENGTH)
	revealed: bool = False
	# wrong guesses seen at each slot when answers were checked
	missed_notes: List[List[str]] = Field(default_factory=lambda: [[] for _ in range(MELODY_LENGTH)])
	missed_chords: List[List[int]] = Field(default_factory=lambda: [[] for _ in range(PROGRESSION_LENGTH)])

	def guess_note(self, slot: int, label: str) -> None:
		catalog_entry(self.melody_guesses, slot)
		degree_index(label)
		self.melody_guesses[slot] = label

	def guess_chord(self, slot: int, chord: int) -> None:
		catalog_entry(self.chord_guesses, slot)
		catalog_entry(CHORDS, chord)
		self.chord_guesses[slot] = chord

	def clear_note(self, slot: int) -> None:
		catalog_entry(self.melody_guesses, slot)
		self.melody_guesses[slot] = None

	def clear_chord(self, slot: int) -> None:
		catalog_entry(self.chord_guesses, slot)
		self.chord_guesses[slot] = None

	def check(self) -> Tuple[int, int]:
		self.revealed = True
		for slot, ok in enumerate(self._note_matches()):
			guess = self.melody_guesses[slot]
			if ok is False and guess not in self.missed_notes[slot]:
				self.missed_notes[slot].append(guess)
		for slot, ok in enumerate(self._chord_matches()):
			guess = self.chord_guesses[slot]
			if ok is False and guess not in self.missed_chords[slot]:
				self.missed_chords[slot].append(guess)
		return self.score()

	def hide(self) -> None:
		self.revealed = False

	def _note_matches(self) -> List[Optional[bool]]:
		return [None if g is None else g == n.label for g, n in zip(self.melody_guesses, self.melody)]

	def _chord_matches(self) -> List[Optional[bool]]:
		return [None if g is None else g == c for g, c in zip(self.chord_guesses, self.progression)]

	def melody_marks(self) -> List[Optional[bool]]:
		"""Per-slot True/False once revealed; None for empty slots or while hidden."""
		if not self.revealed:
			return [None] * len(self.melody)
		return self._note_matches()

	def chord_marks(self) -> List[Optional[bool]]:
		if not self.revealed:
			return [None] * len(self.progression)
		return self._chord_matches()

	def score(self) -> Tuple[int, int]:
		return (
			sum(1 for ok in self._note_matches() if ok),
			sum(1 for ok in self._chord_matches() if ok),
		)


class BeatEvent(NamedTuple):
	beat: int
	chord_slot: int
	chord: int
	melody_slot: Optional[int]
	downbeat: bool


def beat_events(progression: Sequence[int], beat: int) -> BeatEvent:
	"""What sounds on absolute beat ``beat``: one chord per measure, melody on beats 1 and 3."""
	measure, pos = divmod(beat, BEATS_PER_MEASURE)
	chord_slot = measure % len(progression)
	melody_slot = None
	if pos in MELODY_BEATS:
		melody_slot = (measure * len(MELODY_BEATS) + MELODY_BEATS.index(pos)) % MELODY_LENGTH
	return BeatEvent(beat, chord_slot, progression[chord_slot], melody_slot, pos == 0)


def round_beats() -> int:
	"""Beats needed to play every melody note once."""
	return MELODY_LENGTH // len(MELODY_BEATS) * BEATS_PER_MEASURE


class MelodyTrainer:
	def __init__(self, settings: Optional[MelodySettings] = None, rng: Optional[random.Random] = None) -> None:
		settings = settings or MelodySettings()
		self.key: Note = parse_note(settings.key)
		self.bpm: int = settings.bpm
		self.accompaniment: Accompaniment = settings.accompaniment
		self.enabled_degrees: EnabledSet = settings.enabled_degrees
		self.enabled_chords: EnabledSet = settings.enabled_chords
		self.rng = rng or random.Random()
		self.round = MelodyRound(
			melody=generate_melody(self.enabled_degrees.indices(), self.rng),
			progression=list(settings.progression),
		)

	def settings(self) -> MelodySettings:
		return MelodySettings(
			key=self.key.name,
			bpm=self.bpm,
			accompaniment=self.accompaniment,
			enabled_degrees=self.enabled_degrees,
			enabled_chords=self.enabled_chords,
			progression=self.round.progression,
		)

	def new_round(self) -> MelodyRound:
		self.round = MelodyRound(
			melody=generate_melody(self.enabled_degrees.indices(), self.rng),
			progression=generate_progression(self.enabled_chords.indices(), self.rng),
		)
		logger.debug(
			"new round: %s | %s",
			" ".join(n.label for n in self.round.melody),
			" ".join(CHORDS[c].name for c in self.round.progression),
		)
		return self.round

	def set_bpm(self, bpm: int) -> int:
		self.bpm = min(max(int(bpm), MIN_BPM), MAX_BPM)
		return self.bpm

	def set_key(self, name: str) -> None:
		note = parse_note(name)
		if note not in KEYS:
			raise UnknownCatalogIndex(name)
		self.key = note

	def toggle_degree(self, index: int) -> bool:
		return self.enabled_degrees.toggle(index)

	def toggle_chord(self, index: int) -> bool:
		return self.enabled_chords.toggle(index)

	def melody_notes(self) -> List[Note]:
		return [degree_note(self.key, catalog_entry(SCALE_DEGREES, n.degree), n.octave) for n in self.round.melody]

	def chord_voicings(self) -> List[List[Note]]:
		return [chord_notes(self.key, catalog_entry(CHORDS, c), CHORD_OCTAVE) for c in self.round.progression]

	def drone_note(self) -> Note:
		return Note(self.key.pitch_class, CHORD_OCTAVE)
