import math
from pathlib import Path
from typing import Mapping, Optional, Sequence

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
from wordcloud import WordCloud  # noqa: E402

from analysis_config import AnalysisConfig  # noqa: E402
from sentiment_pipeline import (  # noqa: E402
    PipelineResult,
    RankedWord,
    SentimentSummary,
    rank_categories,
    top_words,
)

NAVY = "#1a1a2e"
TEAL = "#16697a"
CORAL = "#db6400"
GOLD = "#c5a880"
SLATE = "#4a4e69"
CATEGORY_COLORS = {
    "negative": CORAL,
    "positive": TEAL,
    "litigious": NAVY,
    "uncertainty": GOLD,
    "constraining": SLATE,
    "superfluous": "#2d6a4f",
}

plt.rcParams.update({
    "figure.facecolor": "white", "axes.facecolor": "white",
    "axes.grid": True, "grid.alpha": 0.3, "grid.linestyle": "--",
    "savefig.facecolor": "white",
})


def _sv(fig, path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(path, dpi=120, bbox_inches="tight")
    plt.close(fig)
    return path


def word_frequencies(ranking: Sequence[RankedWord]) -> dict[str, int]:
    # a word in two categories appears twice in the ranking; size it once
    frequencies: dict[str, int] = {}
    for entry in ranking:
        frequencies[entry.word] = max(frequencies.get(entry.word, 0), entry.count)
    return frequencies


def plot_word_cloud(ranking: Sequence[RankedWord], path: Path, max_words: int = 100) -> Optional[Path]:
    frequencies = word_frequencies(ranking)
    if not frequencies:
        print("warning: no sentiment words, skipping word cloud")
        return None
    cloud = WordCloud(
        width=1200, height=600, background_color="white",
        max_words=max_words, colormap="viridis",
    ).generate_from_frequencies(frequencies)
    fig, ax = plt.subplots(figsize=(12, 6))
    ax.imshow(cloud, interpolation="bilinear")
    ax.axis("off")
    ax.set_title("Sentiment Words", fontsize=14, fontweight="bold")
    return _sv(fig, path)


def plot_category_counts(counts: Mapping[str, int], path: Path) -> Optional[Path]:
    ranked = rank_categories(counts)
    if not ranked:
        print("warning: no sentiment words, skipping category chart")
        return None
    labels = [category for category, _count in ranked][::-1]
    values = [count for _category, count in ranked][::-1]
    colors = [CATEGORY_COLORS.get(label, SLATE) for label in labels]
    fig, ax = plt.subplots(figsize=(10, 6))
    bars = ax.barh(labels, values, color=colors, edgecolor="white")
    for bar, value in zip(bars, values):
        ax.text(bar.get_width(), bar.get_y() + bar.get_height() / 2, f" {value}",
                va="center", fontsize=9)
    ax.set_xlabel("Words")
    ax.set_title("Sentiment Words by Category", fontweight="bold")
    fig.tight_layout()
    return _sv(fig, path)


def plot_top_words(
    ranking: Sequence[RankedWord],
    categories: Sequence[str],
    n: int,
    path: Path,
) -> Optional[Path]:
    panels = [(category, top_words(ranking, category, n)) for category in categories]
    panels = [(category, entries) for category, entries in panels if entries]
    if not panels:
        print("warning: no sentiment words, skipping top-word chart")
        return None

    cols = 2 if len(panels) > 1 else 1
    rows = math.ceil(len(panels) / cols)
    fig, axes = plt.subplots(rows, cols, figsize=(7 * cols, 3.5 * rows), squeeze=False)
    for ax, (category, entries) in zip(axes.flat, panels):
        words = [entry.word for entry in entries][::-1]
        values = [entry.count for entry in entries][::-1]
        ax.barh(words, values, color=CATEGORY_COLORS.get(category, SLATE))
        ax.set_title(category.capitalize(), fontweight="bold")
        ax.set_xlabel("Occurrences")
    for ax in list(axes.flat)[len(panels):]:
        ax.axis("off")
    fig.suptitle(f"Top {n} Words per Category", fontsize=15, fontweight="bold")
    fig.tight_layout()
    return _sv(fig, path)


def plot_sentiment_pie(summary: SentimentSummary, path: Path) -> Path:
    # counts, not percentages: percent_sentiment can pass 100 for multi-category words
    sentiment = summary.sentiment_words
    other = max(summary.total_tokens - sentiment, 0)
    fig, ax = plt.subplots(figsize=(7, 7))
    ax.pie(
        [sentiment, other],
        labels=[
            f"Sentiment ({summary.percent_sentiment:.1f}%)",
            f"Non-sentiment ({summary.percent_nonsentiment:.1f}%)",
        ],
        colors=[CORAL, TEAL],
        startangle=90,
        wedgeprops={"edgecolor": "white"},
    )
    ax.set_title("Sentiment vs Non-sentiment Words", fontweight="bold")
    ax.axis("equal")
    return _sv(fig, path)


def render_charts(result: PipelineResult, out_dir: Path, config: AnalysisConfig) -> list[Path]:
    written = [
        plot_word_cloud(result.ranking, out_dir / "wordcloud.png", config.wordcloud_max_words),
        plot_category_counts(result.category_counts, out_dir / "category_counts.png"),
        plot_top_words(result.ranking, config.chart_categories, config.top_n, out_dir / "top_words.png"),
        plot_sentiment_pie(result.summary, out_dir / "sentiment_share.png"),
    ]
    paths = [path for path in written if path is not None]
    for path in paths:
        print(f"saved: {path}")
    return paths
