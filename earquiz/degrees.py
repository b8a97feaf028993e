from __future__ import annotations

import logging
import random
from typing import List, Optional, Sequence

from .models import AccuracyMatrix, DegreeQuestion, DegreeResult, DegreeSettings, EnabledSet
from .theory import SCALE_DEGREES, TONICS, EmptySelectionError, catalog_entry

logger = logging.getLogger(__name__)


def make_degree_question(enabled: Sequence[int], rng: Optional[random.Random] = None) -> DegreeQuestion:
	if not enabled:
		raise EmptySelectionError("no scale degrees enabled")
	r = rng if rng is not None else random
	tonic = r.choice(TONICS)
	degree = r.choice(list(enabled))
	return DegreeQuestion(tonic=tonic, degree=degree)


def score_degree_answer(q: DegreeQuestion, chosen: str, accuracy: AccuracyMatrix) -> DegreeResult:
	is_correct = chosen == q.answer
	accuracy.record(q.degree, is_correct)
	return DegreeResult(correct=is_correct, answer=q.answer, chosen=chosen)


class ScaleDegreeQuiz:
	"""Tonic-then-degree quiz.

	``play`` is idempotent while a question is outstanding: replaying the
	prompt hands back the very same question until it is answered or
	abandoned, so accuracy counts each question once.
	"""

	def __init__(self, settings: Optional[DegreeSettings] = None, rng: Optional[random.Random] = None) -> None:
		settings = settings or DegreeSettings()
		self.enabled: EnabledSet = settings.enabled
		self.accuracy: AccuracyMatrix = settings.accuracy
		self.rng = rng or random.Random()
		self.question: Optional[DegreeQuestion] = None

	@property
	def awaiting(self) -> bool:
		return self.question is not None

	def settings(self) -> DegreeSettings:
		return DegreeSettings(enabled=self.enabled, accuracy=self.accuracy)

	def play(self) -> DegreeQuestion:
		if self.question is not None:
			return self.question
		self.question = make_degree_question(self.enabled.indices(), self.rng)
		logger.debug("degree question: %s -> %s", self.question.tonic.name, self.question.answer)
		return self.question

	def submit(self, question: DegreeQuestion, chosen: str) -> Optional[DegreeResult]:
		if question is not self.question:
			return None
		self.question = None
		return score_degree_answer(question, chosen, self.accuracy)

	def abandon(self) -> None:
		self.question = None

	def toggle(self, index: int) -> bool:
		changed = self.enabled.toggle(index)
		if changed and self.question is not None and not self.enabled[self.question.degree]:
			# its degree is no longer offered as an answer
			self.abandon()
		return changed

	def answer_labels(self) -> List[str]:
		return [catalog_entry(SCALE_DEGREES, i).label for i in self.enabled.indices()]
