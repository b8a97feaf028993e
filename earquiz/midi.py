import io
from typing import List, Tuple

import mido

from .melody import MelodyTrainer, beat_events, round_beats

# General MIDI programs
MELODY_PROGRAM = 0  # Acoustic Grand Piano
CHORD_PROGRAM = 4  # Electric Piano 1


def _velocity(volume: float) -> int:
	return max(1, min(127, int(60 + 60 * volume)))


def _track(events: List[Tuple[int, str, int]], program: int, channel: int, name: str, velocity: int) -> mido.MidiTrack:
	"""Build a track from absolute-tick (tick, kind, note) events."""
	trk = mido.MidiTrack()
	trk.append(mido.MetaMessage("track_name", name=name, time=0))
	trk.append(mido.Message("program_change", program=program, channel=channel, time=0))
	# note_off sorts before note_on at the same tick
	events.sort(key=lambda e: (e[0], e[1] != "note_off"))
	now = 0
	for tick, kind, note in events:
		trk.append(mido.Message(kind, note=note, velocity=0 if kind == "note_off" else velocity, channel=channel, time=tick - now))
		now = tick
	return trk


def round_to_midi(trainer: MelodyTrainer, volume: float = 0.9) -> mido.MidiFile:
	"""Two tracks, melody and accompaniment, following the trainer's beat schedule."""
	mid = mido.MidiFile()
	tpb = mid.ticks_per_beat
	tempo = mido.MetaMessage("set_tempo", tempo=mido.bpm2tempo(trainer.bpm), time=0)
	n_beats = round_beats()
	melody = trainer.melody_notes()
	voicings = trainer.chord_voicings()

	lead: List[Tuple[int, str, int]] = []
	backing: List[Tuple[int, str, int]] = []
	if trainer.accompaniment == "drone":
		root = trainer.drone_note().midi
		backing += [(0, "note_on", root), (n_beats * tpb, "note_off", root)]
	for b in range(n_beats):
		ev = beat_events(trainer.round.progression, b)
		at = b * tpb
		notes = [n.midi for n in voicings[ev.chord_slot]]
		if trainer.accompaniment == "arpeggio":
			step = tpb // 3
			for i, m in enumerate(notes):
				backing += [(at + i * step, "note_on", m), (at + (i + 1) * step, "note_off", m)]
		elif trainer.accompaniment == "harmonic":
			for m in notes:
				backing += [(at, "note_on", m), (at + int(tpb * 0.8), "note_off", m)]
		if ev.melody_slot is not None:
			m = melody[ev.melody_slot].midi
			lead += [(at, "note_on", m), (at + int(tpb * 0.8), "note_off", m)]

	vel = _velocity(volume)
	lead_trk = _track(lead, MELODY_PROGRAM, 0, "melody", vel)
	lead_trk.insert(0, tempo)
	mid.tracks.append(lead_trk)
	mid.tracks.append(_track(backing, CHORD_PROGRAM, 1, "accompaniment", vel))
	return mid


def midi_bytes(mid: mido.MidiFile) -> bytes:
	buf = io.BytesIO()
	mid.save(file=buf)
	return buf.getvalue()
