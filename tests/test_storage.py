import json

import pytest
from pydantic import ValidationError

from earquiz import storage
from earquiz.models import EnabledSet, IntervalSettings, MelodySettings
from earquiz.theory import INTERVALS


@pytest.fixture(autouse=True)
def data_home(tmp_path, monkeypatch):
	monkeypatch.setenv(storage.ENV_HOME, str(tmp_path))
	return tmp_path


def test_missing_file_gives_defaults():
	s = storage.load_melody_settings()
	assert s.bpm == 120
	assert s.progression == [0, 3, 4, 0]
	assert s.key == "C4"
	assert all(s.enabled_degrees.mask) and all(s.enabled_chords.mask)


def test_round_trip_section(data_home):
	s = IntervalSettings()
	s.enabled.toggle(0)
	s.timings.record(2, 5, 1.25)
	storage.save_interval_settings(s)
	raw = json.loads((data_home / "data.json").read_text())
	assert set(raw) == {"intervals", "degrees", "melody", "app"}
	loaded = storage.load_interval_settings()
	assert loaded.enabled.mask[0] is False
	assert loaded.timings.samples(2, 5) == [1.25]


def test_corrupt_json_falls_back(data_home):
	(data_home / "data.json").write_text("{not json")
	assert storage.load_degree_settings().accuracy.cells[0].total == 0
	assert storage.load_app_state().tab == "scale"


def test_bad_shape_falls_back_per_section(data_home):
	good = {"tab": "melody"}
	bad = {"progression": [0, 3, 4], "bpm": 90}
	(data_home / "data.json").write_text(json.dumps({"app": good, "melody": bad}))
	assert storage.load_app_state().tab == "melody"
	assert storage.load_melody_settings().progression == [0, 3, 4, 0]
	assert storage.load_melody_settings().bpm == 120


def test_all_disabled_mask_is_rejected():
	with pytest.raises(ValidationError):
		EnabledSet(mask=[False] * 3)
	with pytest.raises(ValidationError):
		MelodySettings(bpm=500)


def test_toggles_never_empty_the_set():
	s = EnabledSet.all(len(INTERVALS))
	for i in list(range(len(INTERVALS))) * 3:
		s.toggle(i)
		assert any(s.mask)
	only = EnabledSet(mask=[False, True, False])
	assert not only.toggle(1)
	assert only.mask == [False, True, False]
	assert only.toggle(0)
	assert only.indices() == [0, 1]
