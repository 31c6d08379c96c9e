import os
import sys
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

ROOT_DIR = Path(__file__).resolve().parents[1]
FIXTURES_DIR = Path(__file__).resolve().parent / "fixtures"
sys.path.insert(0, str(ROOT_DIR))

from lm_lexicon import (  # noqa: E402
    LEXICON_ENV_VAR,
    category_sizes,
    load_lexicon,
    load_lexicon_csv,
    main,
)
from sentiment_pipeline import LexiconUnavailableError  # noqa: E402


class TestLoadLexicon(unittest.TestCase):
    def test_master_dictionary_layout(self) -> None:
        lexicon = load_lexicon_csv(FIXTURES_DIR / "lm_sample.csv")
        self.assertEqual(lexicon["litigation"], ("litigious",))
        self.assertEqual(lexicon["settlement"], ("negative", "litigious"))
        self.assertEqual(lexicon["strong"], ("positive",))
        self.assertNotIn("obsolete", lexicon)
        self.assertEqual(len(lexicon), 7)

    def test_long_layout(self) -> None:
        lexicon = load_lexicon_csv(FIXTURES_DIR / "lm_long.csv")
        self.assertEqual(lexicon["settlement"], ("negative", "litigious"))
        self.assertEqual(lexicon["uncertain"], ("uncertainty",))
        self.assertNotIn("must", lexicon)

    def test_category_sizes(self) -> None:
        sizes = category_sizes(load_lexicon_csv(FIXTURES_DIR / "lm_sample.csv"))
        self.assertEqual(sizes["negative"], 3)
        self.assertEqual(sizes["positive"], 2)
        self.assertEqual(sizes["superfluous"], 0)

    def test_missing_file_raises(self) -> None:
        with self.assertRaises(LexiconUnavailableError):
            load_lexicon_csv(FIXTURES_DIR / "does_not_exist.csv")

    def test_no_word_column_raises(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            path = Path(temp_dir) / "bad.csv"
            path.write_text("term,negative\nloss,2009\n", encoding="utf-8")
            with self.assertRaises(LexiconUnavailableError):
                load_lexicon_csv(path)

    def test_no_category_columns_raises(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            path = Path(temp_dir) / "bad.csv"
            path.write_text("Word,Strong_Modal\nMUST,2009\n", encoding="utf-8")
            with self.assertRaises(LexiconUnavailableError):
                load_lexicon_csv(path)

    def test_empty_file_raises(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            path = Path(temp_dir) / "empty.csv"
            path.write_text("", encoding="utf-8")
            with self.assertRaises(LexiconUnavailableError):
                load_lexicon_csv(path)

    def test_env_var_fallback(self) -> None:
        env = {LEXICON_ENV_VAR: str(FIXTURES_DIR / "lm_long.csv")}
        with patch.dict(os.environ, env, clear=False):
            lexicon = load_lexicon()
        self.assertIn("litigation", lexicon)

    def test_no_source_raises(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            with self.assertRaises(LexiconUnavailableError):
                load_lexicon()

    def test_main_reports_sizes(self) -> None:
        self.assertEqual(main(["--lexicon", str(FIXTURES_DIR / "lm_sample.csv")]), 0)
        with self.assertRaises(SystemExit):
            main(["--lexicon", str(FIXTURES_DIR / "does_not_exist.csv")])


if __name__ == "__main__":
    unittest.main()
