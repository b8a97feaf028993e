from __future__ import annotations

import logging
import random
from typing import Optional, Sequence

from .models import EnabledSet, IntervalQuestion, IntervalResult, IntervalSettings, Phase, TimingMatrix
from .theory import ASCENDING, DESCENDING, INTERVALS, NOTE_NAMES, EmptySelectionError, Note, catalog_entry, transpose

logger = logging.getLogger(__name__)


def make_interval_question(enabled: Sequence[int], rng: Optional[random.Random] = None) -> IntervalQuestion:
	"""Pick an enabled interval, a start note and a direction at random.

	Args:
		enabled: Catalog indices of the enabled intervals
		rng: Random source; the module-level one when omitted
	"""
	if not enabled:
		raise EmptySelectionError("no intervals enabled")
	r = rng if rng is not None else random
	interval = r.choice(list(enabled))
	note = r.randrange(len(NOTE_NAMES))
	direction = ASCENDING if r.random() < 0.5 else DESCENDING
	answer = transpose(Note(note), catalog_entry(INTERVALS, interval).semitones, direction).pitch_class
	return IntervalQuestion(note=note, interval=interval, direction=direction, answer=answer)


def score_interval_answer(q: IntervalQuestion, chosen: int, elapsed: float, timings: TimingMatrix) -> IntervalResult:
	is_correct = chosen == q.answer
	# Only correct answers are timed
	if is_correct:
		timings.record(q.note, q.column, elapsed)
	return IntervalResult(correct=is_correct, correct_answer=q.answer, chosen=chosen)


class IntervalQuiz:
	"""Interval naming session: one question in flight, timings per (note, interval, direction)."""

	def __init__(self, settings: Optional[IntervalSettings] = None, rng: Optional[random.Random] = None) -> None:
		settings = settings or IntervalSettings()
		self.enabled: EnabledSet = settings.enabled
		self.timings: TimingMatrix = settings.timings
		self.rng = rng or random.Random()
		self.question: Optional[IntervalQuestion] = None
		self.phase: Phase = "idle"

	def settings(self) -> IntervalSettings:
		return IntervalSettings(enabled=self.enabled, timings=self.timings)

	def next_question(self) -> IntervalQuestion:
		self.question = make_interval_question(self.enabled.indices(), self.rng)
		self.phase = "awaiting"
		logger.debug("interval question: %s", self.question.prompt)
		return self.question

	def submit(self, question: IntervalQuestion, chosen: int, elapsed: float) -> Optional[IntervalResult]:
		if self.phase != "awaiting" or question is not self.question:
			return None
		result = score_interval_answer(question, chosen, elapsed, self.timings)
		self.phase = "correct" if result.correct else "incorrect"
		return result

	def advance(self) -> Optional[IntervalQuestion]:
		"""Move on after a resolved question (auto-advance after correct, "Next" after incorrect)."""
		if self.phase not in ("correct", "incorrect"):
			return None
		return self.next_question()

	def toggle(self, index: int) -> bool:
		changed = self.enabled.toggle(index)
		if changed:
			# The in-flight question may use an interval that is no longer enabled
			self.next_question()
		return changed
