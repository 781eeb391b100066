import json

from carousel_studio.client.preferences import DEFAULTS, Preferences


def test_defaults_when_nothing_is_stored(tmp_path):
    prefs = Preferences(tmp_path / "prefs.json")
    assert prefs.as_dict() == DEFAULTS
    assert prefs.get("mode") == "dark"
    assert prefs.get("missing") is None


def test_set_persists_and_reloads(tmp_path):
    path = tmp_path / "nested" / "prefs.json"
    Preferences(path).set("theme", "emerald")

    assert json.loads(path.read_text(encoding="utf-8"))["theme"] == "emerald"
    reloaded = Preferences(path)
    assert reloaded.get("theme") == "emerald"
    assert reloaded.get("mode") == "dark"


def test_corrupt_file_falls_back_to_defaults(tmp_path):
    path = tmp_path / "prefs.json"
    path.write_text("{not json", encoding="utf-8")
    assert Preferences(path).as_dict() == DEFAULTS


def test_non_object_file_is_ignored(tmp_path):
    path = tmp_path / "prefs.json"
    path.write_text("[1, 2]", encoding="utf-8")
    assert Preferences(path).as_dict() == DEFAULTS
