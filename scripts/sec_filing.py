import argparse
import json
import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Sequence, cast
from urllib.parse import urlparse

import requests

SEC_TICKER_MAP_URL = "https://www.sec.gov/files/company_tickers_exchange.json"
SEC_SUBMISSIONS_URL = "https://data.sec.gov/submissions/CIK{cik10}.json"
SEC_ARCHIVES_BASE = "https://www.sec.gov/Archives/edgar/data"
MAX_REQUESTS_PER_SECOND = 10
ANNUAL_FORMS = {"10-K"}


class RateLimiter:
    def __init__(self, max_requests_per_second: float) -> None:
        self.min_interval = 1.0 / max_requests_per_second
        self.last_time = 0.0

    def wait(self) -> None:
        now = time.monotonic()
        wait_for = self.min_interval - (now - self.last_time)
        if wait_for > 0:
            time.sleep(wait_for)
        self.last_time = time.monotonic()


@dataclass(frozen=True)
class FilingRef:
    ticker: str
    cik: str
    company_name: str
    form: str
    filing_date: str
    report_date: str
    accession_number: str
    primary_document: str
    url: str

    @property
    def year(self) -> Optional[int]:
        return parse_year_from_date(self.report_date) or parse_year_from_date(self.filing_date)


def get_user_agent() -> str:
    user_agent = os.environ.get("SEC_USER_AGENT")
    if not user_agent:
        raise RuntimeError("SEC_USER_AGENT env var is required for live SEC requests.")
    return user_agent


def build_headers(url: str) -> dict[str, str]:
    host = urlparse(url).hostname or ""
    return {
        "User-Agent": get_user_agent(),
        "Accept-Encoding": "gzip, deflate, br",
        "Host": host,
    }


def download(url: str, session: requests.Session, limiter: RateLimiter) -> bytes:
    limiter.wait()
    response = session.get(url, headers=build_headers(url), timeout=30)
    response.raise_for_status()
    return response.content


def as_str_dict(value: Any) -> Optional[dict[str, Any]]:
    if not isinstance(value, dict):
        return None
    out: dict[str, Any] = {}
    for key, item in cast(dict[object, object], value).items():
        if not isinstance(key, str):
            return None
        out[key] = item
    return out


def as_str_list(value: Any) -> Optional[list[str]]:
    if not isinstance(value, list):
        return None
    out: list[str] = []
    for item in cast(list[object], value):
        if not isinstance(item, str):
            return None
        out.append(item)
    return out


def as_list(value: Any) -> Optional[list[Any]]:
    if not isinstance(value, list):
        return None
    return list(cast(list[Any], value))


def normalize_text(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    text = value.strip()
    return text if text else None


def resolve_company_name(map_name: Any, submissions_name: Any, fallback: str) -> str:
    return normalize_text(map_name) or normalize_text(submissions_name) or fallback


def parse_ticker_map(payload: Any) -> dict[str, dict[str, str]]:
    mapping: dict[str, dict[str, str]] = {}
    payload_dict = as_str_dict(payload)

    if payload_dict is not None and "fields" in payload_dict and "data" in payload_dict:
        fields = as_str_list(payload_dict.get("fields"))
        data = as_list(payload_dict.get("data"))
        if fields is None or data is None:
            raise RuntimeError("Unexpected ticker map structure")

        for row in data:
            if not isinstance(row, Sequence) or isinstance(row, (str, bytes)):
                continue
            row_seq = cast(Sequence[Any], row)
            record = dict(zip(fields, row_seq))
            ticker_value = record.get("ticker")
            if not isinstance(ticker_value, str) or not ticker_value.strip():
                continue
            mapping[ticker_value.upper().strip()] = {
                "cik": str(record.get("cik", "")).zfill(10),
                "name": str(record.get("name", record.get("title", ""))),
                "exchange": str(record.get("exchange", "")),
            }
        return mapping

    if payload_dict is not None:
        for entry in payload_dict.values():
            entry_dict = as_str_dict(entry)
            if entry_dict is None:
                continue
            ticker_value = entry_dict.get("ticker")
            if not isinstance(ticker_value, str) or not ticker_value.strip():
                continue
            mapping[ticker_value.upper().strip()] = {
                "cik": str(entry_dict.get("cik_str", "")).zfill(10),
                "name": str(entry_dict.get("title", "")),
                "exchange": str(entry_dict.get("exchange", "")),
            }
        return mapping

    raise RuntimeError("Unexpected ticker map format")


def load_ticker_cik_map(
    session: Optional[requests.Session] = None,
    limiter: Optional[RateLimiter] = None,
) -> dict[str, dict[str, str]]:
    session = session or requests.Session()
    limiter = limiter or RateLimiter(MAX_REQUESTS_PER_SECOND)
    payload: Any = json.loads(download(SEC_TICKER_MAP_URL, session, limiter).decode("utf-8"))
    return parse_ticker_map(payload)


def fetch_submissions_json(
    cik10: str,
    session: Optional[requests.Session] = None,
    limiter: Optional[RateLimiter] = None,
) -> dict[str, Any]:
    session = session or requests.Session()
    limiter = limiter or RateLimiter(MAX_REQUESTS_PER_SECOND)
    url = SEC_SUBMISSIONS_URL.format(cik10=cik10)
    payload = as_str_dict(json.loads(download(url, session, limiter).decode("utf-8")))
    if payload is None:
        raise RuntimeError(f"Unexpected submissions payload for CIK {cik10}")
    return payload


def iter_annual_filings(
    submissions: dict[str, Any],
    allowed_forms: set[str],
) -> list[dict[str, str]]:
    filings = as_str_dict(submissions.get("filings"))
    if filings is None:
        return []
    recent = as_str_dict(filings.get("recent"))
    if recent is None:
        return []
    forms = as_list(recent.get("form")) or []
    filing_dates = as_list(recent.get("filingDate")) or []
    report_dates = as_list(recent.get("reportDate")) or []
    accession_numbers = as_list(recent.get("accessionNumber")) or []
    primary_docs = as_list(recent.get("primaryDocument")) or []

    length = min(
        len(forms),
        len(filing_dates),
        len(accession_numbers),
        len(primary_docs),
        len(report_dates) if report_dates else len(filing_dates),
    )

    rows: list[dict[str, str]] = []
    for idx in range(length):
        form = forms[idx]
        if not isinstance(form, str) or form not in allowed_forms:
            continue
        filing_date = filing_dates[idx]
        accession = accession_numbers[idx]
        primary_doc = primary_docs[idx]
        if not isinstance(filing_date, str):
            continue
        if not isinstance(accession, str) or not isinstance(primary_doc, str):
            continue
        report_date = report_dates[idx] if report_dates else ""
        if not isinstance(report_date, str):
            report_date = ""
        rows.append(
            {
                "form": form,
                "filingDate": filing_date,
                "reportDate": report_date,
                "accessionNumber": accession,
                "primaryDocument": primary_doc,
            }
        )

    return sorted(rows, key=lambda row: row["filingDate"], reverse=True)


def parse_year_from_date(value: str) -> Optional[int]:
    if not value:
        return None
    year_text = value[:4]
    if year_text.isdigit():
        return int(year_text)
    return None


def select_filing(rows: list[dict[str, str]], year: Optional[int] = None) -> Optional[dict[str, str]]:
    if not rows:
        return None
    if year is None:
        return rows[0]
    for row in rows:
        row_year = parse_year_from_date(row.get("reportDate", "")) or parse_year_from_date(
            row.get("filingDate", "")
        )
        if row_year == year:
            return row
    return None


def build_primary_doc_url(cik10: str, accession: str, primary_doc: str) -> str:
    cik_no_leading = str(int(cik10))
    acc_no_dashes = accession.replace("-", "")
    return f"{SEC_ARCHIVES_BASE}/{cik_no_leading}/{acc_no_dashes}/{primary_doc}"


def fetch_annual_filing(
    ticker: str,
    year: Optional[int] = None,
    allowed_forms: Optional[set[str]] = None,
    session: Optional[requests.Session] = None,
) -> tuple[FilingRef, bytes]:
    ticker = ticker.upper().strip()
    forms = allowed_forms or ANNUAL_FORMS
    session = session or requests.Session()
    limiter = RateLimiter(MAX_REQUESTS_PER_SECOND)

    mapping = load_ticker_cik_map(session, limiter)
    if ticker not in mapping:
        raise RuntimeError(f"Ticker not found in mapping: {ticker}")

    cik10 = mapping[ticker]["cik"]
    submissions = fetch_submissions_json(cik10, session=session, limiter=limiter)
    filing = select_filing(iter_annual_filings(submissions, forms), year)
    if filing is None:
        wanted = "/".join(sorted(forms))
        if year is None:
            raise RuntimeError(f"No {wanted} filings found for {ticker}.")
        raise RuntimeError(f"No {wanted} filing found for {ticker} in {year}.")

    primary_doc = filing["primaryDocument"]
    url = build_primary_doc_url(cik10, filing["accessionNumber"], primary_doc)
    html_bytes = download(url, session, limiter)

    ref = FilingRef(
        ticker=ticker,
        cik=cik10,
        company_name=resolve_company_name(mapping[ticker].get("name"), submissions.get("name"), ticker),
        form=filing["form"],
        filing_date=filing["filingDate"],
        report_date=filing["reportDate"],
        accession_number=filing["accessionNumber"],
        primary_document=primary_doc,
        url=url,
    )
    return ref, html_bytes


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Download one annual SEC filing for a ticker.")
    parser.add_argument("--ticker", required=True, help="Ticker symbol (e.g., AAPL).")
    parser.add_argument("--year", type=int, default=None, help="Fiscal year (default: latest).")
    parser.add_argument(
        "--out",
        default=str(Path.cwd()),
        help="Output folder for the downloaded document.",
    )
    parser.add_argument(
        "--include-20f",
        action="store_true",
        help="Accept 20-F filings as well as 10-K.",
    )
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    forms = set(ANNUAL_FORMS)
    if args.include_20f:
        forms.add("20-F")
    try:
        ref, html_bytes = fetch_annual_filing(args.ticker, args.year, forms)
    except RuntimeError as exc:
        raise SystemExit(str(exc)) from exc

    out_dir = Path(args.out)
    out_dir.mkdir(parents=True, exist_ok=True)
    output_path = out_dir / f"{ref.accession_number.replace('-', '')}_{ref.primary_document}"
    output_path.write_bytes(html_bytes)
    print(f"{ref.company_name} {ref.form} filed {ref.filing_date}: {ref.url}")
    print(f"saved: {output_path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
