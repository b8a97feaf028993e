import random

import pytest

from earquiz.melody import (
	MelodyRound,
	MelodyTrainer,
	beat_events,
	generate_melody,
	generate_progression,
	round_beats,
)
from earquiz.models import EnabledSet, MelodyNote, MelodySettings
from earquiz.theory import CHORDS, EmptySelectionError, Note, UnknownCatalogIndex


def test_melody_shape_and_range():
	rng = random.Random(0)
	for enabled in ([0, 2, 4, 5, 7, 9, 11], [7], [0, 1], list(range(12))):
		for _ in range(50):
			melody = generate_melody(enabled, rng)
			assert len(melody) == 12
			assert all(3 <= n.octave <= 5 for n in melody)
			assert all(n.degree in enabled for n in melody)


def test_single_degree_melody_never_moves():
	melody = generate_melody([5], random.Random(1))
	assert [n.degree for n in melody] == [5] * 12
	assert [n.octave for n in melody] == [4] * 12


def test_melody_steps_at_most_four_places():
	enabled = list(range(12))
	melody = generate_melody(enabled, random.Random(7))
	degrees = [n.degree for n in melody]
	for a, b in zip(degrees, degrees[1:]):
		assert min((b - a) % 12, (a - b) % 12) <= 4


def test_melody_wraps_change_octave():
	class Steps:
		def __init__(self, jumps):
			self.jumps = list(jumps)

		def randrange(self, n):
			return n - 1

		def choice(self, seq):
			return self.jumps.pop(0)

	# start on the last of three degrees, wrap up then back down
	melody = generate_melody([0, 4, 7], Steps([1, -1] + [2] * 10))
	assert (melody[0].degree, melody[0].octave) == (0, 5)
	assert (melody[1].degree, melody[1].octave) == (7, 4)


def test_octave_is_clamped():
	class Up:
		def randrange(self, n):
			return 0

		def choice(self, seq):
			return 1

	melody = generate_melody([0, 7], Up())
	assert max(n.octave for n in melody) == 5
	assert melody[-1].octave == 5


def test_progression_starts_on_tonic():
	rng = random.Random(3)
	for _ in range(100):
		prog = generate_progression([3, 4], rng)
		assert len(prog) == 4
		assert prog[0] == 0
		assert all(c in (3, 4) for c in prog[1:])


def test_empty_selections_fail_fast():
	with pytest.raises(EmptySelectionError):
		generate_melody([])
	with pytest.raises(EmptySelectionError):
		generate_progression([])


def sample_round() -> MelodyRound:
	melody = [MelodyNote(degree=d, octave=4) for d in [0, 2, 4, 5, 7, 9, 11, 7, 5, 4, 2, 0]]
	return MelodyRound(melody=melody, progression=[0, 3, 4, 0])


def test_guesses_are_hidden_until_checked():
	r = sample_round()
	r.guess_note(0, "1")
	r.guess_note(1, "3")
	r.guess_chord(1, 3)
	assert r.melody_marks() == [None] * 12
	assert r.chord_marks() == [None] * 4
	assert r.check() == (1, 1)
	marks = r.melody_marks()
	assert marks[0] is True and marks[1] is False and marks[2] is None
	assert r.chord_marks() == [None, True, None, None]
	assert r.missed_notes[1] == ["3"]
	r.hide()
	assert r.melody_marks() == [None] * 12


def test_guess_validation():
	r = sample_round()
	with pytest.raises(UnknownCatalogIndex):
		r.guess_note(12, "1")
	with pytest.raises(UnknownCatalogIndex):
		r.guess_note(0, "#4")
	with pytest.raises(UnknownCatalogIndex):
		r.guess_chord(0, len(CHORDS))


def test_beat_schedule():
	prog = [0, 3, 4, 0]
	assert beat_events(prog, 0).melody_slot is None
	assert beat_events(prog, 0).downbeat
	assert beat_events(prog, 1).melody_slot == 0
	assert beat_events(prog, 3).melody_slot == 1
	assert beat_events(prog, 5).melody_slot == 2
	assert beat_events(prog, 4).chord == 3
	assert beat_events(prog, 16).chord_slot == 0
	assert beat_events(prog, 23).melody_slot == 11
	assert round_beats() == 24


def test_trainer_new_round_uses_enabled_chords():
	mask = [False] * len(CHORDS)
	mask[5] = True
	trainer = MelodyTrainer(MelodySettings(enabled_chords=EnabledSet(mask=mask)), rng=random.Random(8))
	r = trainer.new_round()
	assert r.progression == [0, 5, 5, 5]
	assert trainer.settings().progression == [0, 5, 5, 5]


def test_trainer_rendering_helpers():
	trainer = MelodyTrainer(MelodySettings(key="D4"), rng=random.Random(2))
	assert trainer.round.progression == [0, 3, 4, 0]
	assert trainer.drone_note() == Note(2, 2)
	assert trainer.chord_voicings()[0] == [Note(2, 2), Note(6, 2), Note(9, 2)]
	notes = trainer.melody_notes()
	assert len(notes) == 12
	assert trainer.set_bpm(400) == 240
	assert trainer.set_bpm(10) == 40
	with pytest.raises(UnknownCatalogIndex):
		trainer.set_key("C2")


def test_octave_floor_is_clamped():
	class Down:
		def randrange(self, n):
			return n - 1

		def choice(self, seq):
			return -1

	melody = generate_melody([0, 7], Down())
	assert min(n.octave for n in melody) == 3
	assert melody[-1].octave == 3


def test_clearing_guesses():
	r = sample_round()
	r.guess_note(4, "3")
	r.guess_chord(2, 4)
	r.clear_note(4)
	r.clear_chord(2)
	assert r.melody_guesses[4] is None
	assert r.chord_guesses[2] is None
	assert r.check() == (0, 0)
	with pytest.raises(UnknownCatalogIndex):
		r.clear_note(12)
