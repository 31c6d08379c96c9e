import os
import sys
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

ROOT_DIR = Path(__file__).resolve().parents[1]
FIXTURES_DIR = Path(__file__).resolve().parent / "fixtures"
sys.path.insert(0, str(ROOT_DIR))

import analysis_config  # noqa: E402
from analysis_config import (  # noqa: E402
    AnalysisConfig,
    ValidationError,
    compile_config,
    load_config,
    load_yaml,
)
from sentiment_pipeline import CATEGORIES, STOPWORDS  # noqa: E402


class TestAnalysisConfig(unittest.TestCase):
    def test_ok_compiles(self) -> None:
        config = load_config(str(FIXTURES_DIR / "sentiment_ok.yml"))
        self.assertEqual(config.top_n, 3)
        self.assertEqual(config.chart_categories, ("negative", "positive"))
        self.assertEqual(config.extra_stop_words, frozenset({"holdings"}))
        self.assertEqual(config.wordcloud_max_words, 50)
        self.assertEqual(config.min_paragraph_chars, 0)
        self.assertIn("holdings", config.stop_words)
        self.assertTrue(STOPWORDS <= config.stop_words)

    def test_bad_config_reports_every_error(self) -> None:
        payload = load_yaml(FIXTURES_DIR / "sentiment_bad.yml")
        with self.assertRaises(ValidationError) as ctx:
            compile_config(payload)
        errors = ctx.exception.errors
        self.assertIn("unknown key: colour", errors)
        self.assertIn("top_n must be >= 1", errors)
        self.assertIn("extra_stop_words must be a list", errors)
        self.assertTrue(any(error.startswith("chart_categories: unknown category") for error in errors))

    def test_bool_is_not_an_int(self) -> None:
        with self.assertRaises(ValidationError):
            compile_config({"top_n": True})

    def test_empty_mapping_gives_defaults(self) -> None:
        self.assertEqual(compile_config({}), AnalysisConfig())
        self.assertEqual(AnalysisConfig().chart_categories, CATEGORIES)

    def test_non_mapping_root_fails(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            path = Path(temp_dir) / "list.yml"
            path.write_text("- a\n- b\n", encoding="utf-8")
            with self.assertRaises(ValidationError):
                load_yaml(path)

    def test_missing_explicit_file_fails(self) -> None:
        with self.assertRaises(ValidationError):
            load_config(str(FIXTURES_DIR / "missing.yml"))

    def test_missing_default_file_uses_defaults(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            with patch.object(analysis_config, "DEFAULT_CONFIG_PATH", Path(temp_dir) / "none.yml"):
                with patch.dict(os.environ, {}, clear=True):
                    self.assertEqual(load_config(), AnalysisConfig())

    def test_env_override(self) -> None:
        env = {analysis_config.CONFIG_ENV_VAR: str(FIXTURES_DIR / "sentiment_ok.yml")}
        with patch.dict(os.environ, env, clear=False):
            self.assertEqual(load_config().top_n, 3)

    def test_repo_default_config_is_valid(self) -> None:
        if not analysis_config.DEFAULT_CONFIG_PATH.exists():
            self.skipTest("default config not found")
        config = compile_config(load_yaml(analysis_config.DEFAULT_CONFIG_PATH))
        self.assertEqual(config.chart_categories, CATEGORIES)

    def test_main_exit_codes(self) -> None:
        self.assertEqual(analysis_config.main(["--config", str(FIXTURES_DIR / "sentiment_ok.yml")]), 0)
        self.assertEqual(analysis_config.main(["--config", str(FIXTURES_DIR / "sentiment_bad.yml")]), 1)


if __name__ == "__main__":
    unittest.main()
