from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Type, TypeVar

from pydantic import BaseModel, ValidationError

from .models import AppState, DegreeSettings, IntervalSettings, MelodySettings

logger = logging.getLogger(__name__)

ENV_HOME = "EARQUIZ_HOME"

SECTIONS: Dict[str, Type[BaseModel]] = {
	"intervals": IntervalSettings,
	"degrees": DegreeSettings,
	"melody": MelodySettings,
	"app": AppState,
}

M = TypeVar("M", bound=BaseModel)


def _data_path() -> Path:
	override = os.environ.get(ENV_HOME)
	dir_ = Path(override) if override else Path.home() / ".earquiz"
	dir_.mkdir(parents=True, exist_ok=True)
	return dir_ / "data.json"


def _load_raw() -> Dict[str, Any]:
	p = _data_path()
	if not p.exists():
		return {}
	try:
		data = json.loads(p.read_text())
	except (OSError, ValueError) as e:
		logger.warning("discarding unreadable %s: %s", p, e)
		return {}
	return data if isinstance(data, dict) else {}


def _save_raw(data: Dict[str, Any]) -> None:
	p = _data_path()
	p.write_text(json.dumps(data, indent=2))


def _load_section(name: str, model: Type[M]) -> M:
	obj = _load_raw().get(name)
	if not isinstance(obj, dict):
		return model()
	try:
		return model.model_validate(obj)
	except ValidationError as e:
		logger.warning("falling back to default %s settings: %s", name, e.error_count())
		return model()


def _save_section(name: str, obj: BaseModel) -> None:
	raw = _load_raw()
	raw[name] = obj.model_dump(mode="json")
	_add_defaults_if_missing(raw)
	_save_raw(raw)


def _add_defaults_if_missing(raw: Dict[str, Any]) -> None:
	for name, model in SECTIONS.items():
		if name not in raw or not isinstance(raw[name], dict):
			raw[name] = model().model_dump(mode="json")


def load_interval_settings() -> IntervalSettings:
	return _load_section("intervals", IntervalSettings)


def save_interval_settings(s: IntervalSettings) -> None:
	_save_section("intervals", s)


def load_degree_settings() -> DegreeSettings:
	return _load_section("degrees", DegreeSettings)


def save_degree_settings(s: DegreeSettings) -> None:
	_save_section("degrees", s)


def load_melody_settings() -> MelodySettings:
	return _load_section("melody", MelodySettings)


def save_melody_settings(s: MelodySettings) -> None:
	_save_section("melody", s)


def load_app_state() -> AppState:
	return _load_section("app", AppState)


def save_app_state(s: AppState) -> None:
	_save_section("app", s)
