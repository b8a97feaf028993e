import pytest

from earquiz.theory import (
	A4_FREQ,
	A4_MIDI,
	CHORDS,
	DESCENDING,
	Note,
	UnknownCatalogIndex,
	UnknownPitchName,
	chord_notes,
	degree_note,
	midi_to_freq,
	name_of,
	parse_note,
	pitch_class_index,
	transpose,
	SCALE_DEGREES,
)


def test_midi_to_freq_a4():
	assert midi_to_freq(A4_MIDI) == A4_FREQ
	assert Note(9, 4).midi == A4_MIDI
	assert Note(0, 4).midi == 60


def test_transpose_wraps_and_tracks_octave():
	assert transpose(Note(11, 4), 1) == Note(0, 5)
	assert transpose(Note(0, 4), 1, DESCENDING) == Note(11, 3)
	assert transpose(Note(0, 4), 12) == Note(0, 5)
	assert transpose(Note(4, 4), 3, DESCENDING) == Note(1, 4)


def test_transpose_round_trip():
	for pc in range(12):
		for s in range(13):
			up = transpose(Note(pc, 4), s)
			assert transpose(up, s, DESCENDING) == Note(pc, 4)


def test_pitch_name_lookup():
	assert pitch_class_index("C#") == 1
	assert name_of(11) == "B"
	with pytest.raises(UnknownPitchName):
		pitch_class_index("H")
	with pytest.raises(UnknownCatalogIndex):
		name_of(12)


def test_parse_note():
	assert parse_note("F#3") == Note(6, 3)
	assert Note(6, 3).name == "F#3"
	with pytest.raises(UnknownPitchName):
		parse_note("F#")


def test_chord_upper_voices_stay_above_root():
	v = CHORDS[4]
	assert v.offsets == (7, 11, 14)
	notes = chord_notes(Note(0, 4), v, octave=2)
	assert notes == [Note(7, 2), Note(11, 2), Note(2, 3)]
	assert [n.midi for n in notes] == [43, 47, 50]


def test_degree_note_keeps_given_octave():
	# b7 in A lands on G, rendered in the octave the melody asked for
	assert degree_note(Note(9, 4), SCALE_DEGREES[10], 3) == Note(7, 3)


def test_transpose_rejects_unknown_direction():
	with pytest.raises(ValueError):
		transpose(Note(0, 4), 3, "desc")
