import argparse
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, cast

import yaml

from sentiment_pipeline import CATEGORIES, DEFAULT_TOP_N, STOPWORDS


ROOT_DIR = Path(__file__).resolve().parent
REPO_ROOT = ROOT_DIR.parent
DEFAULT_CONFIG_PATH = REPO_ROOT / "config" / "sentiment.yml"
CONFIG_ENV_VAR = "SENTIMENT_CONFIG"

KNOWN_KEYS = {
    "version",
    "top_n",
    "chart_categories",
    "extra_stop_words",
    "wordcloud_max_words",
    "min_paragraph_chars",
}


class ValidationError(Exception):
    def __init__(self, errors: list[str]) -> None:
        super().__init__("\n".join(errors))
        self.errors = errors


@dataclass(frozen=True)
class AnalysisConfig:
    top_n: int = DEFAULT_TOP_N
    chart_categories: tuple[str, ...] = CATEGORIES
    extra_stop_words: frozenset[str] = field(default_factory=frozenset)
    wordcloud_max_words: int = 100
    min_paragraph_chars: int = 0

    @property
    def stop_words(self) -> frozenset[str]:
        return STOPWORDS | self.extra_stop_words


def as_str_dict(value: Any) -> Optional[dict[str, Any]]:
    if not isinstance(value, dict):
        return None
    output: dict[str, Any] = {}
    for key, item in cast(dict[object, object], value).items():
        if not isinstance(key, str):
            return None
        output[key] = item
    return output


def as_list(value: Any) -> Optional[list[Any]]:
    if not isinstance(value, list):
        return None
    return list(cast(list[Any], value))


def load_yaml(path: Path) -> dict[str, Any]:
    try:
        payload = yaml.safe_load(path.read_text(encoding="utf-8", errors="replace"))
    except yaml.YAMLError as exc:
        raise ValidationError([f"Invalid YAML in {path}: {exc}"]) from exc
    if payload is None:
        return {}
    payload_dict = as_str_dict(payload)
    if payload_dict is None:
        raise ValidationError([f"YAML root must be a mapping: {path}"])
    return payload_dict


def read_bounded_int(payload: dict[str, Any], key: str, default: int, errors: list[str], minimum: int = 1) -> int:
    value = payload.get(key, default)
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, int):
        errors.append(f"{key} must be an integer")
        return default
    if value < minimum:
        errors.append(f"{key} must be >= {minimum}")
        return default
    return value


def compile_config(payload: dict[str, Any]) -> AnalysisConfig:
    errors: list[str] = []

    unknown = sorted(set(payload) - KNOWN_KEYS)
    for key in unknown:
        errors.append(f"unknown key: {key}")

    version = payload.get("version", 1)
    if not isinstance(version, (str, int, float)):
        errors.append("version must be string/number")

    top_n = read_bounded_int(payload, "top_n", DEFAULT_TOP_N, errors)
    max_words = read_bounded_int(payload, "wordcloud_max_words", 100, errors)
    min_chars = read_bounded_int(payload, "min_paragraph_chars", 0, errors, minimum=0)

    chart_categories: tuple[str, ...] = CATEGORIES
    if "chart_categories" in payload:
        raw_categories = as_list(payload.get("chart_categories"))
        if raw_categories is None or not raw_categories:
            errors.append("chart_categories must be a non-empty list")
        else:
            wanted: set[str] = set()
            for item in raw_categories:
                if not isinstance(item, str) or item.strip().lower() not in CATEGORIES:
                    errors.append(f"chart_categories: unknown category ({item})")
                    continue
                wanted.add(item.strip().lower())
            chart_categories = tuple(category for category in CATEGORIES if category in wanted)

    extra_stop_words: set[str] = set()
    if "extra_stop_words" in payload:
        raw_words = as_list(payload.get("extra_stop_words"))
        if raw_words is None:
            errors.append("extra_stop_words must be a list")
        else:
            for item in raw_words:
                if not isinstance(item, str) or not item.strip():
                    errors.append(f"extra_stop_words: entry must be a non-empty string ({item})")
                    continue
                extra_stop_words.add(item.strip().lower())

    if errors:
        raise ValidationError(errors)

    return AnalysisConfig(
        top_n=top_n,
        chart_categories=chart_categories,
        extra_stop_words=frozenset(extra_stop_words),
        wordcloud_max_words=max_words,
        min_paragraph_chars=min_chars,
    )


def resolve_config_path(path: Optional[str]) -> tuple[Path, bool]:
    if path:
        return Path(path), True
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override), True
    return DEFAULT_CONFIG_PATH, False


def load_config(path: Optional[str] = None) -> AnalysisConfig:
    config_path, explicit = resolve_config_path(path)
    if not config_path.exists():
        if explicit:
            raise ValidationError([f"Config file not found: {config_path}"])
        return AnalysisConfig()
    return compile_config(load_yaml(config_path))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Validate a sentiment analysis config file.")
    parser.add_argument("--config", help=f"YAML config (default: ${CONFIG_ENV_VAR} or {DEFAULT_CONFIG_PATH}).")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
    except ValidationError as exc:
        print("Config errors:")
        for item in exc.errors:
            print(f"- {item}")
        return 1

    print(f"top_n: {config.top_n}")
    print(f"chart_categories: {', '.join(config.chart_categories)}")
    print(f"extra_stop_words: {len(config.extra_stop_words)}")
    print(f"wordcloud_max_words: {config.wordcloud_max_words}")
    print(f"min_paragraph_chars: {config.min_paragraph_chars}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
