import random

import pytest

from earquiz.intervals import IntervalQuiz, make_interval_question, score_interval_answer
from earquiz.models import EnabledSet, IntervalQuestion, IntervalSettings, TimingMatrix, timing_column
from earquiz.theory import INTERVALS, EmptySelectionError, pitch_class_index


class StubRandom:
	"""Always picks the first option, start note C and ascending."""

	def choice(self, seq):
		return seq[0]

	def randrange(self, n):
		return 0

	def random(self):
		return 0.0


def only(index: int) -> IntervalSettings:
	mask = [False] * len(INTERVALS)
	mask[index] = True
	return IntervalSettings(enabled=EnabledSet(mask=mask))


def test_minor_second_up_from_c_is_c_sharp():
	quiz = IntervalQuiz(only(0), rng=StubRandom())
	q = quiz.next_question()
	assert (q.note, q.interval, q.direction) == (0, 0, "ascending")
	assert q.answer == pitch_class_index("C#")
	assert q.prompt == "C ascending minor 2nd"

	result = quiz.submit(q, pitch_class_index("C#"), 2.5)
	assert result is not None and result.correct
	assert quiz.timings.samples(0, timing_column(0, "ascending")) == [2.5]
	assert quiz.phase == "correct"


def test_wrong_answer_records_nothing_and_waits_for_next():
	quiz = IntervalQuiz(only(0), rng=StubRandom())
	q = quiz.next_question()
	result = quiz.submit(q, pitch_class_index("D"), 1.0)
	assert result is not None
	assert not result.correct
	assert result.correct_answer == 1
	assert all(not cell for row in quiz.timings.cells for cell in row)
	assert quiz.phase == "incorrect"
	# a second answer to the resolved question is ignored
	assert quiz.submit(q, 1, 1.0) is None
	assert quiz.advance() is not None
	assert quiz.phase == "awaiting"


def test_generated_answers_match_interval_size():
	rng = random.Random(3)
	enabled = list(range(len(INTERVALS)))
	for _ in range(200):
		q = make_interval_question(enabled, rng)
		size = INTERVALS[q.interval].semitones
		dist = (q.answer - q.note) % 12 if q.direction == "ascending" else (q.note - q.answer) % 12
		assert dist == size % 12


def test_generation_respects_enabled_subset():
	rng = random.Random(5)
	for _ in range(100):
		assert make_interval_question([2, 7], rng).interval in (2, 7)
	with pytest.raises(EmptySelectionError):
		make_interval_question([], rng)


def test_score_descending_column():
	timings = TimingMatrix()
	q = IntervalQuestion(note=4, interval=2, direction="descending", answer=1)
	assert score_interval_answer(q, 1, 4.0, timings).correct
	assert timings.samples(4, 5) == [4.0]


def test_stale_question_is_ignored():
	quiz = IntervalQuiz(rng=random.Random(1))
	old = quiz.next_question()
	quiz.toggle(3)
	assert quiz.question is not old
	assert quiz.submit(old, old.answer, 1.0) is None
	assert all(not cell for row in quiz.timings.cells for cell in row)


def test_toggle_regenerates_from_new_set():
	quiz = IntervalQuiz(only(0), rng=random.Random(2))
	quiz.next_question()
	assert quiz.toggle(6)
	assert quiz.toggle(0)
	assert quiz.question.interval == 6
	assert quiz.phase == "awaiting"


def test_toggle_last_interval_is_rejected():
	quiz = IntervalQuiz(only(0), rng=random.Random(2))
	q = quiz.next_question()
	assert not quiz.toggle(0)
	assert quiz.enabled.indices() == [0]
	assert quiz.question is q
