import argparse
import os
from pathlib import Path
from typing import Optional

import pandas as pd

from sentiment_pipeline import CATEGORIES, LexiconUnavailableError, build_lexicon


LEXICON_ENV_VAR = "LM_LEXICON_PATH"
WORD_COLUMNS = ("word",)
LONG_CATEGORY_COLUMNS = ("sentiment", "category")


def resolve_lexicon_path(path: Optional[str]) -> Path:
    if path:
        return Path(path)
    override = os.environ.get(LEXICON_ENV_VAR)
    if override:
        return Path(override)
    raise LexiconUnavailableError(
        f"No lexicon given; pass --lexicon or set {LEXICON_ENV_VAR}."
    )


def read_lexicon_frame(path: Path) -> pd.DataFrame:
    if not path.exists():
        raise LexiconUnavailableError(f"Lexicon file not found: {path}")
    try:
        frame = pd.read_csv(path, dtype=str, keep_default_na=False)
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as exc:
        raise LexiconUnavailableError(f"Unable to read lexicon {path}: {exc}") from exc
    frame.columns = [str(column).strip().lower() for column in frame.columns]
    return frame


def find_column(frame: pd.DataFrame, candidates: tuple[str, ...]) -> Optional[str]:
    for name in candidates:
        if name in frame.columns:
            return name
    return None


def is_member_flag(value: str) -> bool:
    text = value.strip()
    if not text:
        return False
    try:
        return float(text) > 0
    except ValueError:
        return False


def pairs_from_long_frame(frame: pd.DataFrame, word_column: str, category_column: str) -> list[tuple[str, str]]:
    pairs: list[tuple[str, str]] = []
    for word, category in zip(frame[word_column], frame[category_column]):
        word = word.strip().lower()
        category = category.strip().lower()
        if not word or category not in CATEGORIES:
            continue
        pairs.append((word, category))
    return pairs


def pairs_from_master_frame(frame: pd.DataFrame, word_column: str) -> list[tuple[str, str]]:
    category_columns = [category for category in CATEGORIES if category in frame.columns]
    if not category_columns:
        raise LexiconUnavailableError(
            "Lexicon CSV has no category columns (expected some of: "
            + ", ".join(CATEGORIES)
            + ")."
        )
    pairs: list[tuple[str, str]] = []
    for _index, row in frame.iterrows():
        word = str(row[word_column]).strip().lower()
        if not word:
            continue
        for category in category_columns:
            if is_member_flag(str(row[category])):
                pairs.append((word, category))
    return pairs


def load_lexicon_csv(path: Path) -> dict[str, tuple[str, ...]]:
    frame = read_lexicon_frame(path)
    word_column = find_column(frame, WORD_COLUMNS)
    if word_column is None:
        raise LexiconUnavailableError(f"Lexicon CSV has no 'word' column: {path}")

    category_column = find_column(frame, LONG_CATEGORY_COLUMNS)
    if category_column is not None:
        pairs = pairs_from_long_frame(frame, word_column, category_column)
    else:
        pairs = pairs_from_master_frame(frame, word_column)

    if not pairs:
        raise LexiconUnavailableError(f"Lexicon CSV has no sentiment words: {path}")
    return build_lexicon(pairs)


def load_lexicon(path: Optional[str] = None) -> dict[str, tuple[str, ...]]:
    return load_lexicon_csv(resolve_lexicon_path(path))


def category_sizes(lexicon: dict[str, tuple[str, ...]]) -> dict[str, int]:
    sizes = {category: 0 for category in CATEGORIES}
    for categories in lexicon.values():
        for category in categories:
            sizes[category] += 1
    return sizes


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Load a Loughran-McDonald CSV and report its size.")
    parser.add_argument("--lexicon", help=f"Lexicon CSV (default: ${LEXICON_ENV_VAR}).")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        lexicon = load_lexicon(args.lexicon)
    except LexiconUnavailableError as exc:
        raise SystemExit(str(exc)) from exc

    print(f"words: {len(lexicon)}")
    for category, size in category_sizes(lexicon).items():
        print(f"{category}: {size}")
    multi = sum(1 for categories in lexicon.values() if len(categories) > 1)
    print(f"multi-category words: {multi}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
