from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .theory import (
	CHORDS,
	DIRECTIONS,
	INTERVALS,
	KEYS,
	NOTE_NAMES,
	SCALE_DEGREES,
	TONIC_CHORD,
	IntervalType,
	Note,
	ScaleDegree,
	catalog_entry,
	name_of,
	transpose,
)


Direction = Literal["ascending", "descending"]
Phase = Literal["idle", "awaiting", "correct", "incorrect"]
Accompaniment = Literal["arpeggio", "harmonic", "drone"]
Tab = Literal["scale", "interval", "melody"]

MELODY_LENGTH = 12
PROGRESSION_LENGTH = 4
TIMING_COLUMNS = len(INTERVALS) * len(DIRECTIONS)


class EnabledSet(BaseModel):
	"""Boolean mask over a fixed catalog. Never all False."""

	mask: List[bool]

	@classmethod
	def all(cls, size: int) -> "EnabledSet":
		return cls(mask=[True] * size)

	@field_validator("mask")
	@classmethod
	def _at_least_one(cls, v: List[bool]) -> List[bool]:
		if not any(v):
			raise ValueError("at least one entry must be enabled")
		return v

	def __len__(self) -> int:
		return len(self.mask)

	def __getitem__(self, index: int) -> bool:
		return self.mask[index]

	def indices(self) -> List[int]:
		return [i for i, on in enumerate(self.mask) if on]

	def toggle(self, index: int) -> bool:
		"""Flip one entry. Returns False (and changes nothing) when it is the last enabled one."""
		catalog_entry(self.mask, index)
		if self.mask[index] and sum(self.mask) == 1:
			return False
		self.mask[index] = not self.mask[index]
		return True


def timing_column(interval: int, direction: str) -> int:
	return interval * 2 + (1 if direction == "descending" else 0)


class TimingMatrix(BaseModel):
	# rows: start pitch class, columns: interval * 2 + direction
	cells: List[List[List[float]]] = Field(
		default_factory=lambda: [[[] for _ in range(TIMING_COLUMNS)] for _ in range(len(NOTE_NAMES))]
	)

	@field_validator("cells")
	@classmethod
	def _shape(cls, v: List[List[List[float]]]) -> List[List[List[float]]]:
		if len(v) != len(NOTE_NAMES) or any(len(row) != TIMING_COLUMNS for row in v):
			raise ValueError(f"timing matrix must be {len(NOTE_NAMES)}x{TIMING_COLUMNS}")
		return v

	def samples(self, note: int, column: int) -> List[float]:
		return self.cells[note][column]

	def record(self, note: int, column: int, seconds: float) -> None:
		self.cells[note][column].append(float(seconds))


class AccuracyCell(BaseModel):
	correct: int = Field(default=0, ge=0)
	total: int = Field(default=0, ge=0)

	@property
	def percent(self) -> Optional[float]:
		if self.total == 0:
			return None
		return self.correct / self.total * 100.0


class AccuracyMatrix(BaseModel):
	cells: List[AccuracyCell] = Field(default_factory=lambda: [AccuracyCell() for _ in SCALE_DEGREES])

	@field_validator("cells")
	@classmethod
	def _shape(cls, v: List[AccuracyCell]) -> List[AccuracyCell]:
		if len(v) != len(SCALE_DEGREES):
			raise ValueError(f"accuracy matrix must have {len(SCALE_DEGREES)} cells")
		for cell in v:
			if cell.correct > cell.total:
				raise ValueError("correct count exceeds total")
		return v

	def record(self, degree: int, correct: bool) -> None:
		cell = self.cells[degree]
		cell.total += 1
		if correct:
			cell.correct += 1


class IntervalQuestion(BaseModel):
	model_config = ConfigDict(frozen=True)

	note: int
	interval: int
	direction: Direction
	answer: int

	@property
	def interval_type(self) -> IntervalType:
		return catalog_entry(INTERVALS, self.interval)

	@property
	def column(self) -> int:
		return timing_column(self.interval, self.direction)

	@property
	def prompt(self) -> str:
		return f"{name_of(self.note)} {self.direction} {self.interval_type.name}"


class IntervalResult(BaseModel):
	correct: bool
	correct_answer: int
	chosen: int


class DegreeQuestion(BaseModel):
	model_config = ConfigDict(frozen=True)

	tonic: Note
	degree: int

	@property
	def scale_degree(self) -> ScaleDegree:
		return catalog_entry(SCALE_DEGREES, self.degree)

	@property
	def answer(self) -> str:
		return self.scale_degree.label

	@property
	def target(self) -> Note:
		return transpose(self.tonic, self.scale_degree.semitones)


class DegreeResult(BaseModel):
	correct: bool
	answer: str
	chosen: str


class MelodyNote(BaseModel):
	model_config = ConfigDict(frozen=True)

	degree: int
	octave: int = Field(ge=3, le=5)

	@property
	def label(self) -> str:
		return catalog_entry(SCALE_DEGREES, self.degree).label


class IntervalSettings(BaseModel):
	enabled: EnabledSet = Field(default_factory=lambda: EnabledSet.all(len(INTERVALS)))
	timings: TimingMatrix = Field(default_factory=TimingMatrix)

	@field_validator("enabled")
	@classmethod
	def _catalog_size(cls, v: EnabledSet) -> EnabledSet:
		if len(v) != len(INTERVALS):
			raise ValueError("enabled intervals must match the interval catalog")
		return v


class DegreeSettings(BaseModel):
	enabled: EnabledSet = Field(default_factory=lambda: EnabledSet.all(len(SCALE_DEGREES)))
	accuracy: AccuracyMatrix = Field(default_factory=AccuracyMatrix)

	@field_validator("enabled")
	@classmethod
	def _catalog_size(cls, v: EnabledSet) -> EnabledSet:
		if len(v) != len(SCALE_DEGREES):
			raise ValueError("enabled degrees must match the scale degree catalog")
		return v


class MelodySettings(BaseModel):
	key: str = Field(default="C4")
	bpm: int = Field(default=120, ge=40, le=240)
	accompaniment: Accompaniment = Field(default="arpeggio")
	enabled_degrees: EnabledSet = Field(default_factory=lambda: EnabledSet.all(len(SCALE_DEGREES)))
	enabled_chords: EnabledSet = Field(default_factory=lambda: EnabledSet.all(len(CHORDS)))
	progression: List[int] = Field(default=[0, 3, 4, 0])

	@field_validator("key")
	@classmethod
	def _known_key(cls, v: str) -> str:
		if v not in [k.name for k in KEYS]:
			raise ValueError(f"unknown key {v!r}")
		return v

	@field_validator("enabled_degrees")
	@classmethod
	def _degree_catalog(cls, v: EnabledSet) -> EnabledSet:
		if len(v) != len(SCALE_DEGREES):
			raise ValueError("enabled degrees must match the scale degree catalog")
		return v

	@field_validator("enabled_chords")
	@classmethod
	def _chord_catalog(cls, v: EnabledSet) -> EnabledSet:
		if len(v) != len(CHORDS):
			raise ValueError("enabled chords must match the chord catalog")
		return v

	@field_validator("progression")
	@classmethod
	def _progression_shape(cls, v: List[int]) -> List[int]:
		if len(v) != PROGRESSION_LENGTH or v[0] != TONIC_CHORD:
			raise ValueError("progression must be 4 chords starting on the tonic")
		if any(not 0 <= i < len(CHORDS) for i in v):
			raise ValueError("progression holds an unknown chord")
		return v


class AppState(BaseModel):
	tab: Tab = Field(default="scale")
