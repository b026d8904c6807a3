"""Tests for loading settings, topics and the keyword bank."""

import json
from pathlib import Path

import pytest

from financehub.utils.config_loader import (
    DEFAULT_WEIGHTS,
    ConfigError,
    load_long_tail_keywords,
    load_settings,
    load_site_config,
    load_topics,
    validate_weights,
)
from financehub.utils.pipeline_config import RuntimeConfig

REPO_CONFIG = Path(__file__).resolve().parents[1] / "config"


def write_json(path: Path, data) -> Path:
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


class TestShippedConfig:

    def test_repository_config_loads(self):
        config = load_site_config(REPO_CONFIG)
        assert config.site_name == "Smart Finance Hub"
        assert len(config.topics) == 9
        assert config.long_tail_keywords
        assert sum(config.quality_weights.values()) == pytest.approx(1.0)


class TestSettings:

    def test_defaults_for_empty_file(self, tmp_path):
        config = load_settings(write_json(tmp_path / "settings.json", {}))
        assert config.base_url == "https://smartfinancehub.vip"
        assert config.generation.min_word_count == 2000
        assert config.archive.archive_after_days == 365
        assert config.homepage.display_count == 12

    def test_overrides(self, tmp_path):
        path = write_json(
            tmp_path / "settings.json",
            {
                "site": {"name": "Test Hub", "baseUrl": "https://example.com/"},
                "contentGeneration": {"maxRetries": 5, "apiTimeoutSeconds": 10},
                "archive": {"archiveAfterDays": 180},
            },
        )
        config = load_settings(path)
        assert config.site_name == "Test Hub"
        assert config.base_url == "https://example.com"
        assert config.generation.max_retries == 5
        assert config.generation.api_timeout_seconds == 10.0
        assert config.archive.archive_after_days == 180

    @pytest.mark.parametrize(
        "data",
        [
            {"site": {"baseUrl": "not-a-url"}},
            {"contentGeneration": {"maxRetries": 0}},
            {"contentGeneration": {"apiTimeoutSeconds": "soon"}},
            {"quality": {"weights": {"readability": 1.0}}},
            {"archive": ["x"]},
        ],
    )
    def test_invalid_settings(self, tmp_path, data):
        with pytest.raises(ConfigError):
            load_settings(write_json(tmp_path / "settings.json", data))

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError):
            load_settings(tmp_path / "missing.json")

    def test_malformed_file(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text("{site: [", encoding="utf-8")
        with pytest.raises(ConfigError):
            load_settings(path)


class TestWeights:

    def test_default_weights_are_valid(self):
        assert validate_weights(DEFAULT_WEIGHTS) == DEFAULT_WEIGHTS

    def test_negative_weight(self):
        weights = dict(DEFAULT_WEIGHTS, readability=-0.2, seo=0.65)
        with pytest.raises(ConfigError):
            validate_weights(weights)

    def test_unknown_criterion(self):
        with pytest.raises(ConfigError):
            validate_weights(dict(DEFAULT_WEIGHTS, freshness=0.0))


class TestTopicsAndKeywords:

    def test_topics(self, tmp_path):
        path = write_json(
            tmp_path / "topics.json",
            {"topics": [
                {"id": "a", "title": "A", "category": "savings", "keywords": ["x"], "priority": "HIGH"},
                {"id": "b", "title": "B", "category": "debt"},
            ]},
        )
        topics = load_topics(path)
        assert [(t.id, t.priority) for t in topics] == [("a", "high"), ("b", "medium")]

    @pytest.mark.parametrize(
        "topics",
        [
            [{"id": "a", "title": "A"}],
            [{"id": "a", "title": "A", "category": "c", "priority": "urgent"}],
            [{"id": "a", "title": "A", "category": "c"}, {"id": "a", "title": "B", "category": "c"}],
            ["just a string"],
        ],
    )
    def test_invalid_topics(self, tmp_path, topics):
        with pytest.raises(ConfigError):
            load_topics(write_json(tmp_path / "topics.json", {"topics": topics}))

    def test_long_tail_terms_and_strings(self, tmp_path):
        path = write_json(
            tmp_path / "keywords.json",
            {"keywordGroups": {
                "longTailKeywords": {"keywords": [{"term": " roth ira for beginners "}, "best savings account"]},
                "other": {"keywords": [{"term": "ignored"}]},
            }},
        )
        assert load_long_tail_keywords(path) == ["roth ira for beginners", "best savings account"]

    def test_invalid_keyword_entry(self, tmp_path):
        path = write_json(tmp_path / "keywords.json", {"keywordGroups": {"longTailKeywords": {"keywords": [3]}}})
        with pytest.raises(ConfigError):
            load_long_tail_keywords(path)


class TestRuntimeConfig:

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("SFH_CONTENT_DIR", "/tmp/content")
        monkeypatch.setenv("SFH_DRY_RUN", "yes")
        monkeypatch.setenv("GENERATION_BACKEND", "Ollama")
        runtime = RuntimeConfig()
        assert runtime.content_dir == Path("/tmp/content")
        assert runtime.dry_run is True
        assert runtime.generation_backend == "ollama"
