import argparse
import json
from dataclasses import asdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

import requests

from analysis_config import AnalysisConfig, ValidationError, load_config
from lm_lexicon import load_lexicon
from sec_document import parse_filing_bytes
from sec_filing import ANNUAL_FORMS, FilingRef, fetch_annual_filing
from sentiment_charts import render_charts
from sentiment_pipeline import (
    CATEGORIES,
    Document,
    Lexicon,
    PipelineResult,
    SentimentPipelineError,
    count_categories_by_section,
    rank_categories,
    run_pipeline,
)


def utc_now() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


def build_summary_payload(
    result: PipelineResult,
    config: AnalysisConfig,
    meta: dict[str, Any],
    charts: list[Path],
) -> dict[str, Any]:
    top_words: dict[str, list[dict[str, Any]]] = {}
    for category in CATEGORIES:
        top_words[category] = [
            {"word": entry.word, "count": entry.count}
            for entry in result.top_words(category, config.top_n)
        ]
    return {
        "meta": meta,
        "summary": {
            "totalTokens": result.summary.total_tokens,
            "sentimentWords": result.summary.sentiment_words,
            "percentSentiment": round(result.summary.percent_sentiment, 4),
            "percentNonsentiment": round(result.summary.percent_nonsentiment, 4),
            "rawTokens": len(result.tokens),
        },
        "categoryCounts": result.category_counts,
        "categoryRanking": [
            {"category": category, "count": count}
            for category, count in rank_categories(result.category_counts)
        ],
        "sectionCategoryCounts": count_categories_by_section(result.classified),
        "topWords": top_words,
        "charts": [path.name for path in charts],
    }


def filing_meta(ref: FilingRef) -> dict[str, Any]:
    meta = asdict(ref)
    return {
        "ticker": meta["ticker"],
        "cik": meta["cik"],
        "companyName": meta["company_name"],
        "form": meta["form"],
        "filingDate": meta["filing_date"],
        "reportDate": meta["report_date"],
        "accessionNumber": meta["accession_number"],
        "secUrl": meta["url"],
    }


def analyze_document(
    document: Document,
    lexicon: Lexicon,
    config: AnalysisConfig,
    meta: dict[str, Any],
    out_dir: Path,
    label: str,
    charts: bool = True,
) -> dict[str, Any]:
    result = run_pipeline(document, lexicon, stop_words=config.stop_words)
    chart_paths = render_charts(result, out_dir / f"charts_{label}", config) if charts else []
    payload = build_summary_payload(result, config, meta, chart_paths)
    out_dir.mkdir(parents=True, exist_ok=True)
    output_path = out_dir / f"summary_{label}.json"
    output_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    print(f"saved: {output_path}")
    return payload


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Score the words of an annual filing against the Loughran-McDonald lexicon."
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--ticker", help="Ticker symbol (e.g., AAPL).")
    source.add_argument("--fixture-html", help="Local filing HTML file to score instead.")
    parser.add_argument("--year", type=int, default=None, help="Fiscal year (default: latest).")
    parser.add_argument(
        "--include-20f",
        action="store_true",
        help="Accept 20-F filings as well as 10-K.",
    )
    parser.add_argument("--lexicon", help="Lexicon CSV (default: $LM_LEXICON_PATH).")
    parser.add_argument("--config", help="YAML config (default: config/sentiment.yml).")
    parser.add_argument(
        "--out",
        default=str(Path.cwd()),
        help="Output folder for the JSON summary and charts.",
    )
    parser.add_argument("--no-charts", action="store_true", help="Write the JSON summary only.")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
    except ValidationError as exc:
        raise SystemExit(f"Invalid config:\n{exc}") from exc

    try:
        lexicon = load_lexicon(args.lexicon)
        if args.fixture_html:
            fixture = Path(args.fixture_html)
            if not fixture.exists():
                raise SystemExit(f"Fixture not found: {fixture}")
            html_bytes = fixture.read_bytes()
            label = fixture.stem
            meta: dict[str, Any] = {"source": str(fixture)}
        else:
            forms = set(ANNUAL_FORMS)
            if args.include_20f:
                forms.add("20-F")
            ref, html_bytes = fetch_annual_filing(args.ticker, args.year, forms)
            label = f"{ref.ticker}_{ref.year or 'latest'}"
            meta = filing_meta(ref)
            print(f"{ref.company_name} {ref.form} filed {ref.filing_date}: {ref.url}")

        document = parse_filing_bytes(html_bytes, config.min_paragraph_chars)
        meta["segments"] = len(document)
        meta["generatedAtUtc"] = utc_now()
        payload = analyze_document(
            document,
            lexicon,
            config,
            meta,
            Path(args.out),
            label,
            charts=not args.no_charts,
        )
    except (SentimentPipelineError, RuntimeError, requests.RequestException) as exc:
        raise SystemExit(f"{type(exc).__name__}: {exc}") from exc

    summary = payload["summary"]
    print(
        f"tokens: {summary['totalTokens']}, sentiment words: {summary['sentimentWords']} "
        f"({summary['percentSentiment']:.2f}%)"
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
