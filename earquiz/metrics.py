from __future__ import annotations

from typing import Literal, Optional, Sequence

import numpy as np


Tier = Literal["fast", "medium", "slow"]

WINDOW = 5
FAST_BELOW = 3.0
MEDIUM_BELOW = 10.0


def rolling_average(samples: Sequence[float], window: int = WINDOW) -> Optional[float]:
	"""Mean of the last ``window`` samples, or None when there are none."""
	recent = list(samples)[-window:] if window > 0 else []
	if not recent:
		return None
	return float(np.mean(recent))


def classify(average: float) -> Tier:
	if average < FAST_BELOW:
		return "fast"
	if average < MEDIUM_BELOW:
		return "medium"
	return "slow"


def format_average(average: Optional[float]) -> str:
	return "" if average is None else f"{average:.2f}"


def format_accuracy(correct: int, total: int) -> str:
	if total == 0:
		return "-"
	return f"{correct}/{total} ({correct / total * 100:.0f}%)"
