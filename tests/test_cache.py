"""
Tests for the JSON-file translation cache.
"""

from babele.models import ModuleInfo, Translation
from babele.storage.cache import TranslationCache


def translations():
    return [Translation.model_validate({"collection": "dnd5e.items", "entries": {"Dagger": {"name": "Dolch"}}})]


def installed(version="1.0.0", active=True):
    return {"lang-de": ModuleInfo(id="lang-de", version=version, active=active)}


class TestTranslationCache:
    """Tests for TranslationCache."""

    def test_disabled_cache(self):
        cache = TranslationCache(None, "dnd5e", "world")
        assert not cache.enabled
        cache.save_module_data("lang-de", "1.0.0", translations())
        assert cache.get_module_data("lang-de") is None
        assert cache.load_file_list() == []

    def test_round_trip(self, tmp_path):
        cache = TranslationCache(tmp_path, "dnd5e", "world")
        cache.save_module_data("lang-de", "1.0.0", translations())
        loaded = cache.get_module_data("lang-de")
        assert loaded[0].collection == "dnd5e.items"
        assert loaded[0].entries == {"Dagger": {"name": "Dolch"}}

    def test_miss(self, tmp_path):
        assert TranslationCache(tmp_path, "dnd5e", "world").get_module_data("lang-de") is None

    def test_corrupt_record_is_a_miss(self, tmp_path, caplog):
        cache = TranslationCache(tmp_path, "dnd5e", "world")
        cache.save_module_data("lang-de", "1.0.0", translations())
        path = tmp_path / "dnd5e" / "modules" / "lang-de.json"
        path.write_text("{broken", encoding="utf-8")
        assert cache.get_module_data("lang-de") is None
        assert "Corrupt cache file" in caplog.text

    def test_init_keeps_current_modules(self, tmp_path):
        cache = TranslationCache(tmp_path, "dnd5e", "world")
        cache.save_module_data("lang-de", "1.0.0", translations())
        cache.init(installed())
        assert cache.get_module_data("lang-de") is not None

    def test_init_drops_uninstalled_modules(self, tmp_path):
        cache = TranslationCache(tmp_path, "dnd5e", "world")
        cache.save_module_data("lang-de", "1.0.0", translations())
        cache.init({})
        assert cache.get_module_data("lang-de") is None

    def test_init_drops_changed_versions(self, tmp_path):
        cache = TranslationCache(tmp_path, "dnd5e", "world")
        cache.save_module_data("lang-de", "1.0.0", translations())
        cache.init(installed(version="1.1.0"))
        assert cache.get_module_data("lang-de") is None

    def test_init_tracks_worlds(self, tmp_path):
        first = TranslationCache(tmp_path, "dnd5e", "world-a")
        first.save_module_data("lang-de", "1.0.0", translations())

        second = TranslationCache(tmp_path, "dnd5e", "world-b")
        second.init(installed())
        assert second.get_module_data("lang-de") is not None

        first.init(installed(active=False))
        assert first.get_module_data("lang-de") is not None

        second.init(installed(active=False))
        assert second.get_module_data("lang-de") is None

    def test_file_list(self, tmp_path):
        cache = TranslationCache(tmp_path, "dnd5e", "world")
        cache.save_file_list(["b.json", "a.json", "a.json"])
        assert cache.load_file_list() == ["a.json", "b.json"]

    def test_clear(self, tmp_path):
        cache = TranslationCache(tmp_path, "dnd5e", "world")
        cache.save_module_data("lang-de", "1.0.0", translations())
        cache.save_file_list(["a.json"])
        cache.clear()
        assert cache.get_module_data("lang-de") is None
        assert cache.load_file_list() == []

    def test_systems_are_separate(self, tmp_path):
        TranslationCache(tmp_path, "dnd5e", "world").save_module_data("lang-de", "1.0.0", translations())
        assert TranslationCache(tmp_path, "pf2e", "world").get_module_data("lang-de") is None
