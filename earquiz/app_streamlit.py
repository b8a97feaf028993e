import time
from typing import Any

import altair as alt
import pandas as pd
import streamlit as st

from earquiz.audio import degree_clip, interval_clip, melody_clip, wav_bytes
from earquiz.degrees import ScaleDegreeQuiz
from earquiz.intervals import IntervalQuiz
from earquiz.melody import MelodyTrainer
from earquiz.metrics import classify, format_accuracy, format_average, rolling_average
from earquiz.midi import midi_bytes, round_to_midi
from earquiz.models import AppState
from earquiz.storage import (
	load_app_state,
	load_degree_settings,
	load_interval_settings,
	load_melody_settings,
	save_app_state,
	save_degree_settings,
	save_interval_settings,
	save_melody_settings,
)
from earquiz.theory import CHORDS, INTERVALS, KEYS, NOTE_LABELS, NOTE_NAMES, SCALE_DEGREES


st.set_page_config(page_title="Ear Quiz", page_icon=None, layout="wide")

TIER_COLORS = {"fast": "green", "medium": "orange", "slow": "red"}
TABS = {"scale": "Scale Degrees", "interval": "Interval Names", "melody": "Random Melody"}
CORRECT_DELAY = 1.0


def get_state() -> Any:
	if "app" not in st.session_state:
		st.session_state.app = load_app_state()
	if "intervals" not in st.session_state:
		st.session_state.intervals = IntervalQuiz(load_interval_settings())
		st.session_state.intervals.next_question()
		st.session_state.started_at = time.monotonic()
	if "degrees" not in st.session_state:
		st.session_state.degrees = ScaleDegreeQuiz(load_degree_settings())
	if "melody" not in st.session_state:
		st.session_state.melody = MelodyTrainer(load_melody_settings())
	if "interval_feedback" not in st.session_state:
		st.session_state.interval_feedback = None
	if "degree_feedback" not in st.session_state:
		st.session_state.degree_feedback = None
	if "degree_audio" not in st.session_state:
		st.session_state.degree_audio = None
	return st.session_state


def toggle_row(catalog_names, enabled, on_toggle, key: str) -> None:
	cols = st.columns(len(catalog_names))
	for idx, name in enumerate(catalog_names):
		with cols[idx]:
			label = f"**{name}**" if enabled[idx] else name
			last = enabled[idx] and len(enabled.indices()) == 1
			if st.button(label, key=f"{key}-{idx}", disabled=last, use_container_width=True):
				on_toggle(idx)
				st.rerun()


def degree_tab(state: Any) -> None:
	quiz: ScaleDegreeQuiz = state.degrees
	st.subheader("Scale Degree Quiz")

	def toggle(idx: int) -> None:
		quiz.toggle(idx)
		save_degree_settings(quiz.settings())

	toggle_row([d.label for d in SCALE_DEGREES], quiz.enabled, toggle, "deg")

	if st.button("Play Random Tonic & Degree", use_container_width=True):
		q = quiz.play()
		state.degree_feedback = None
		state.degree_audio = wav_bytes(degree_clip(q))
	if state.degree_audio is not None:
		st.audio(state.degree_audio, format="audio/wav", autoplay=True)

	labels = quiz.answer_labels()
	cols = st.columns(len(labels))
	for i, label in enumerate(labels):
		with cols[i]:
			if st.button(label, key=f"deg-answer-{label}", use_container_width=True) and quiz.question is not None:
				result = quiz.submit(quiz.question, label)
				if result is not None:
					save_degree_settings(quiz.settings())
					state.degree_feedback = result

	fb = state.degree_feedback
	if fb is not None:
		if fb.correct:
			st.success("Correct!")
		else:
			st.error(f"Incorrect. The answer was {fb.answer}")

	rows = []
	for deg, cell in zip(SCALE_DEGREES, quiz.accuracy.cells):
		rows.append({"degree": deg.label, "accuracy": format_accuracy(cell.correct, cell.total)})
	st.dataframe(rows, hide_index=True)


def timing_frame(quiz: IntervalQuiz) -> pd.DataFrame:
	data = []
	for row, note in enumerate(NOTE_NAMES):
		for i, interval in enumerate(INTERVALS):
			for col, arrow in ((i * 2, "↑"), (i * 2 + 1, "↓")):
				avg = rolling_average(quiz.timings.samples(row, col))
				if avg is None:
					continue
				data.append({
					"note": note,
					"interval": f"{interval.name}{arrow}",
					"seconds": round(avg, 2),
					"label": format_average(avg),
					"tier": classify(avg),
				})
	return pd.DataFrame(data)


def interval_tab(state: Any) -> None:
	quiz: IntervalQuiz = state.intervals
	st.subheader("Interval Quiz")

	def toggle(idx: int) -> None:
		if quiz.toggle(idx):
			state.interval_feedback = None
			state.started_at = time.monotonic()
		save_interval_settings(quiz.settings())

	toggle_row([i.name for i in INTERVALS], quiz.enabled, toggle, "int")

	q = quiz.question
	if q is None:
		return
	st.markdown(f"### {q.prompt}")

	cols = st.columns(len(NOTE_LABELS))
	for idx, label in enumerate(NOTE_LABELS):
		with cols[idx]:
			if st.button(label, key=f"int-answer-{idx}", disabled=quiz.phase != "awaiting", use_container_width=True):
				result = quiz.submit(q, idx, time.monotonic() - state.started_at)
				if result is not None:
					save_interval_settings(quiz.settings())
					state.interval_feedback = result

	fb = state.interval_feedback
	if fb is not None and fb.correct:
		st.success("Correct!")
		time.sleep(CORRECT_DELAY)
		quiz.advance()
		state.interval_feedback = None
		state.started_at = time.monotonic()
		st.rerun()

	if fb is not None:
		st.error(f"Incorrect. The correct answer was {NOTE_NAMES[fb.correct_answer]}.")
		st.audio(wav_bytes(interval_clip(q)), format="audio/wav")
		if st.button("Next"):
			quiz.advance()
			state.interval_feedback = None
			state.started_at = time.monotonic()
			st.rerun()

	df = timing_frame(quiz)
	if not df.empty:
		st.subheader("Average answer time (last 5)")
		chart = alt.Chart(df).mark_rect().encode(
			x=alt.X("interval:N", sort=None),
			y=alt.Y("note:N", sort=NOTE_NAMES),
			color=alt.Color("tier:N", scale=alt.Scale(domain=list(TIER_COLORS), range=list(TIER_COLORS.values()))),
			tooltip=["note", "interval", "label"],
		).properties(height=300)
		st.altair_chart(chart, use_container_width=True)


def mark(ok) -> str:
	if ok is None:
		return ""
	return "✓" if ok else "✗"


def melody_tab(state: Any) -> None:
	trainer: MelodyTrainer = state.melody
	st.subheader("Melodic Ear Trainer")

	def persist() -> None:
		save_melody_settings(trainer.settings())

	key_names = [k.name for k in KEYS]
	key = st.selectbox("Key", key_names, index=key_names.index(trainer.key.name))
	bpm = st.slider("Speed (BPM)", min_value=40, max_value=240, value=trainer.bpm)
	modes = ["arpeggio", "harmonic", "drone"]
	accompaniment = st.radio("Accompaniment", modes, index=modes.index(trainer.accompaniment), horizontal=True)
	if key != trainer.key.name or bpm != trainer.bpm or accompaniment != trainer.accompaniment:
		trainer.set_key(key)
		trainer.set_bpm(bpm)
		trainer.accompaniment = accompaniment
		persist()

	def toggle_degree(idx: int) -> None:
		trainer.toggle_degree(idx)
		persist()

	def toggle_chord(idx: int) -> None:
		trainer.toggle_chord(idx)
		persist()

	toggle_row([d.label for d in SCALE_DEGREES], trainer.enabled_degrees, toggle_degree, "mel-deg")
	toggle_row([c.name for c in CHORDS], trainer.enabled_chords, toggle_chord, "mel-chord")

	c1, c2, c3 = st.columns(3)
	with c1:
		if st.button("Next Question", use_container_width=True):
			trainer.new_round()
			persist()
	with c2:
		if st.button("Check Answer", disabled=trainer.round.revealed, use_container_width=True):
			melody_ok, chords_ok = trainer.round.check()
			st.info(f"Melody {melody_ok}/12, chords {chords_ok}/4")
	with c3:
		if trainer.round.revealed and st.button("Hide Answers", use_container_width=True):
			trainer.round.hide()

	st.audio(wav_bytes(melody_clip(trainer)), format="audio/wav")
	st.download_button("Download MIDI", midi_bytes(round_to_midi(trainer)), file_name="round.mid")

	st.markdown("**Guess the Chord Progression**")
	chord_names = [c.name for c in CHORDS]
	cols = st.columns(4)
	marks = trainer.round.chord_marks()
	for slot in range(4):
		with cols[slot]:
			current = trainer.round.chord_guesses[slot]
			choice = st.selectbox(
				f"{slot + 1} {mark(marks[slot])}",
				["-"] + chord_names,
				index=0 if current is None else current + 1,
				key=f"chord-guess-{id(trainer.round)}-{slot}",
			)
			if choice == "-":
				trainer.round.clear_chord(slot)
			else:
				trainer.round.guess_chord(slot, chord_names.index(choice))

	st.markdown("**Guess the Melody Sequence**")
	labels = [d.label for d in SCALE_DEGREES]
	cols = st.columns(12)
	marks = trainer.round.melody_marks()
	for slot in range(12):
		with cols[slot]:
			current = trainer.round.melody_guesses[slot]
			choice = st.selectbox(
				f"{slot + 1} {mark(marks[slot])}",
				["-"] + labels,
				index=0 if current is None else labels.index(current) + 1,
				key=f"note-guess-{id(trainer.round)}-{slot}",
			)
			if choice == "-":
				trainer.round.clear_note(slot)
			else:
				trainer.round.guess_note(slot, choice)

	if trainer.round.revealed:
		st.write("Melody: " + " ".join(n.label for n in trainer.round.melody))
		st.write("Progression: " + " ".join(CHORDS[c].name for c in trainer.round.progression))


def main() -> None:
	state = get_state()
	names = list(TABS)
	tab = st.sidebar.radio("Exercise", names, index=names.index(state.app.tab), format_func=TABS.get)
	if tab != state.app.tab:
		state.app = AppState(tab=tab)
		save_app_state(state.app)

	if tab == "scale":
		degree_tab(state)
	elif tab == "interval":
		interval_tab(state)
	else:
		melody_tab(state)


if __name__ == "__main__":
	main()
