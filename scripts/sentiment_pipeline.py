from __future__ import annotations

import re
from collections import Counter
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional, Sequence, Union, cast

from sklearn.feature_extraction.text import ENGLISH_STOP_WORDS


STOPWORDS: frozenset[str] = frozenset(ENGLISH_STOP_WORDS)
NUMERIC_PATTERN: re.Pattern[str] = re.compile(r"\d{2,}")
WORD_PATTERN: re.Pattern[str] = re.compile(r"[^\W_]+")
CATEGORIES: tuple[str, ...] = (
    "negative",
    "positive",
    "litigious",
    "uncertainty",
    "constraining",
    "superfluous",
)
DEFAULT_TOP_N = 10


class SentimentPipelineError(Exception):
    pass


class EmptyDocumentError(SentimentPipelineError):
    pass


class MalformedDocumentError(SentimentPipelineError):
    pass


class LexiconUnavailableError(SentimentPipelineError):
    pass


@dataclass(frozen=True)
class Segment:
    section: str
    text: str


@dataclass(frozen=True)
class Document:
    segments: tuple[Segment, ...]

    def __len__(self) -> int:
        return len(self.segments)


@dataclass(frozen=True)
class Token:
    word: str
    section: str


@dataclass(frozen=True)
class ClassifiedToken:
    word: str
    category: str
    section: str = ""


@dataclass(frozen=True)
class RankedWord:
    word: str
    category: str
    count: int


@dataclass(frozen=True)
class SentimentSummary:
    total_tokens: int
    sentiment_words: int
    percent_sentiment: float
    percent_nonsentiment: float


Lexicon = Mapping[str, tuple[str, ...]]
CategoryCount = dict[str, int]


@dataclass(frozen=True)
class PipelineResult:
    tokens: list[Token]
    cleaned: list[Token]
    classified: list[ClassifiedToken]
    category_counts: CategoryCount
    ranking: list[RankedWord]
    summary: SentimentSummary

    def top_words(self, category: str, n: int = DEFAULT_TOP_N) -> list[RankedWord]:
        return top_words(self.ranking, category, n)


def document_from_records(records: Optional[Iterable[Any]]) -> Document:
    # one bad record fails the whole document
    if records is None:
        raise EmptyDocumentError("Document has no segments.")
    segments: list[Segment] = []
    for index, record in enumerate(records):
        if isinstance(record, Segment):
            segments.append(record)
            continue
        if isinstance(record, Mapping):
            entry = cast(Mapping[str, Any], record)
            section = entry.get("section")
            text = entry.get("text")
        elif isinstance(record, Sequence) and not isinstance(record, (str, bytes)):
            row = cast(Sequence[Any], record)
            if len(row) != 2:
                raise MalformedDocumentError(f"segment {index}: expected (section, text)")
            section, text = row[0], row[1]
        else:
            raise MalformedDocumentError(f"segment {index}: unsupported record type")
        segments.append(_checked_segment(index, section, text))
    if not segments:
        raise EmptyDocumentError("Document has no segments.")
    return Document(segments=tuple(segments))


def _checked_segment(index: int, section: Any, text: Any) -> Segment:
    if not isinstance(section, str) or not section.strip():
        raise MalformedDocumentError(f"segment {index}: missing section label")
    if not isinstance(text, str):
        raise MalformedDocumentError(f"segment {index}: missing text")
    return Segment(section=section, text=text)


def validate_document(document: Optional[Document]) -> Document:
    if document is None or not document.segments:
        raise EmptyDocumentError("Document has no segments.")
    for index, segment in enumerate(document.segments):
        _checked_segment(index, segment.section, segment.text)
    return document


def tokenize_document(document: Optional[Document]) -> list[Token]:
    document = validate_document(document)
    tokens: list[Token] = []
    for segment in document.segments:
        for word in WORD_PATTERN.findall(segment.text.lower()):
            tokens.append(Token(word=word, section=segment.section))
    if not tokens:
        raise EmptyDocumentError("Document produced no tokens.")
    return tokens


def is_numeric_token(word: str, numeric_pattern: re.Pattern[str] = NUMERIC_PATTERN) -> bool:
    # substring test: "covid19" and "section2021" count as numeric
    return numeric_pattern.search(word) is not None


def clean_tokens(
    tokens: Sequence[Token],
    stop_words: Iterable[str] = STOPWORDS,
    numeric_pattern: re.Pattern[str] = NUMERIC_PATTERN,
) -> list[Token]:
    stop_set = frozenset(word.lower() for word in stop_words)
    return [
        token
        for token in tokens
        if not is_numeric_token(token.word, numeric_pattern)
        and token.word.lower() not in stop_set
    ]


def _ordered_categories(word: str, categories: Iterable[Any]) -> tuple[str, ...]:
    found: set[str] = set()
    for raw in categories:
        if not isinstance(raw, str):
            raise LexiconUnavailableError(f"{word}: category must be a string")
        category = raw.strip().lower()
        if category not in CATEGORIES:
            raise LexiconUnavailableError(f"{word}: unknown category ({raw})")
        found.add(category)
    return tuple(category for category in CATEGORIES if category in found)


def build_lexicon(
    entries: Union[Mapping[str, Iterable[str]], Iterable[tuple[str, str]]],
) -> dict[str, tuple[str, ...]]:
    grouped: dict[str, list[str]] = {}
    if isinstance(entries, Mapping):
        mapping = cast(Mapping[Any, Any], entries)
        for raw_word, raw_categories in mapping.items():
            if not isinstance(raw_word, str):
                raise LexiconUnavailableError("lexicon word must be a string")
            if isinstance(raw_categories, str):
                raw_categories = [raw_categories]
            if not isinstance(raw_categories, Iterable):
                raise LexiconUnavailableError(f"{raw_word}: categories must be a list of strings")
            grouped.setdefault(raw_word.strip().lower(), []).extend(raw_categories)
    else:
        for pair in entries:
            if (
                not isinstance(pair, Sequence)
                or isinstance(pair, (str, bytes))
                or len(pair) != 2
                or not isinstance(pair[0], str)
            ):
                raise LexiconUnavailableError(f"malformed lexicon entry: {pair!r}")
            grouped.setdefault(pair[0].strip().lower(), []).append(pair[1])

    lexicon: dict[str, tuple[str, ...]] = {}
    for word, categories in grouped.items():
        if not word:
            continue
        ordered = _ordered_categories(word, categories)
        if ordered:
            lexicon[word] = ordered
    if not lexicon:
        raise LexiconUnavailableError("Lexicon has no words.")
    return lexicon


def classify_tokens(tokens: Sequence[Token], lexicon: Optional[Lexicon]) -> list[ClassifiedToken]:
    if not lexicon:
        raise LexiconUnavailableError("No lexicon available for classification.")
    classified: list[ClassifiedToken] = []
    for token in tokens:
        categories = lexicon.get(token.word.lower())
        if not categories:
            continue
        for category in categories:
            classified.append(
                ClassifiedToken(word=token.word, category=category, section=token.section)
            )
    return classified


def count_categories(classified: Sequence[ClassifiedToken]) -> CategoryCount:
    return dict(Counter(item.category for item in classified))


def rank_categories(counts: Mapping[str, int]) -> list[tuple[str, int]]:
    # sorted() is stable, so equal counts keep first-occurrence order
    return sorted(counts.items(), key=lambda item: -item[1])


def count_categories_by_section(classified: Sequence[ClassifiedToken]) -> dict[str, CategoryCount]:
    by_section: dict[str, Counter[str]] = {}
    for item in classified:
        by_section.setdefault(item.section, Counter())[item.category] += 1
    return {section: dict(counts) for section, counts in by_section.items()}


def rank_words(classified: Sequence[ClassifiedToken]) -> list[RankedWord]:
    first_seen: dict[str, int] = {}
    pair_counts: Counter[tuple[str, str]] = Counter()
    for item in classified:
        first_seen.setdefault(item.word, len(first_seen))
        pair_counts[(item.word, item.category)] += 1
    ranked = [
        RankedWord(word=word, category=category, count=count)
        for (word, category), count in pair_counts.items()
    ]
    ranked.sort(key=lambda entry: (-entry.count, first_seen[entry.word]))
    return ranked


def top_words(ranking: Sequence[RankedWord], category: str, n: int = DEFAULT_TOP_N) -> list[RankedWord]:
    if n <= 0:
        return []
    return [entry for entry in ranking if entry.category == category][:n]


def summarize_sentiment(cleaned: Sequence[Token], counts: Mapping[str, int]) -> SentimentSummary:
    # the base counts each cleaned token once while the numerator sums category
    # counts, so percent_sentiment can pass 100
    total_tokens = len(cleaned)
    if total_tokens == 0:
        raise EmptyDocumentError("No tokens left after cleaning; cannot compute percentages.")
    sentiment_words = sum(counts.values())
    percent_sentiment = 100.0 * sentiment_words / total_tokens
    return SentimentSummary(
        total_tokens=total_tokens,
        sentiment_words=sentiment_words,
        percent_sentiment=percent_sentiment,
        percent_nonsentiment=100.0 - percent_sentiment,
    )


def run_pipeline(
    document: Optional[Document],
    lexicon: Optional[Lexicon],
    stop_words: Iterable[str] = STOPWORDS,
    numeric_pattern: re.Pattern[str] = NUMERIC_PATTERN,
) -> PipelineResult:
    tokens = tokenize_document(document)
    cleaned = clean_tokens(tokens, stop_words, numeric_pattern)
    classified = classify_tokens(cleaned, lexicon)
    counts = count_categories(classified)
    summary = summarize_sentiment(cleaned, counts)
    return PipelineResult(
        tokens=tokens,
        cleaned=cleaned,
        classified=classified,
        category_counts=counts,
        ranking=rank_words(classified),
        summary=summary,
    )
