import argparse
import re
from pathlib import Path
from typing import Optional

from bs4 import BeautifulSoup

from sentiment_pipeline import Document, Segment, document_from_records


BLOCK_TAGS = {
    "p",
    "div",
    "br",
    "li",
    "h1",
    "h2",
    "h3",
    "h4",
    "h5",
    "h6",
}

COVER_SECTION = "COVER"
PART_HEADER = re.compile(r"^\s*part\s+(iv|i{1,3})\s*[.:\-–—]?\s*$", re.IGNORECASE)


def normalize_whitespace(text: str) -> str:
    text = text.replace("\r\n", "\n").replace("\r", "\n").replace("\xa0", " ")
    lines = [re.sub(r"\s+", " ", line).strip() for line in text.split("\n")]

    while lines and lines[0] == "":
        lines.pop(0)
    while lines and lines[-1] == "":
        lines.pop()

    output: list[str] = []
    blank_count = 0
    for line in lines:
        if line == "":
            blank_count += 1
            if blank_count <= 2:
                output.append("")
        else:
            blank_count = 0
            output.append(line)

    return "\n".join(output)


def choose_parser(html: str) -> str:
    head = html.lstrip()[:200].lower()
    if head.startswith("<?xml") or re.match(r"\s*<xbrl", head):
        return "lxml-xml"
    return "lxml"


def clean_html_to_text(html: str) -> str:
    soup = BeautifulSoup(html, choose_parser(html))

    for tag in soup(["script", "style", "noscript"]):
        tag.decompose()

    for tag in soup.find_all("table"):
        tag.decompose()

    for tag in soup.find_all(BLOCK_TAGS):
        if tag.name == "br":
            tag.replace_with("\n")
        else:
            tag.append("\n")

    text = soup.get_text(separator="\n")
    return normalize_whitespace(text)


def split_paragraphs(text: str, min_chars: int = 0) -> list[str]:
    paragraphs = [chunk.strip() for chunk in re.split(r"\n{2,}", text) if chunk.strip()]
    return [para for para in paragraphs if len(para) >= min_chars]


def part_label(line: str) -> Optional[str]:
    match = PART_HEADER.match(line)
    if not match:
        return None
    return f"PART {match.group(1).upper()}"


def split_parts(text: str, min_chars: int = 0) -> list[tuple[str, str]]:
    segments: list[tuple[str, str]] = []
    section = COVER_SECTION
    buffer: list[str] = []

    def flush() -> None:
        for para in split_paragraphs("\n".join(buffer), min_chars):
            segments.append((section, para))
        buffer.clear()

    for line in text.split("\n"):
        label = part_label(line)
        if label is None:
            buffer.append(line)
            continue
        flush()
        section = label

    flush()
    return segments


def parse_filing_text(text: str, min_chars: int = 0) -> Document:
    return document_from_records(split_parts(text, min_chars))


def parse_filing_html(html: str, min_chars: int = 0) -> Document:
    return parse_filing_text(clean_html_to_text(html), min_chars)


def parse_filing_bytes(html_bytes: bytes, min_chars: int = 0) -> Document:
    return parse_filing_html(html_bytes.decode("utf-8", errors="replace"), min_chars)


def section_overview(document: Document) -> list[tuple[str, int, int]]:
    overview: list[tuple[str, int, int]] = []
    index: dict[str, int] = {}
    for segment in document.segments:
        if segment.section not in index:
            index[segment.section] = len(overview)
            overview.append((segment.section, 0, 0))
        pos = index[segment.section]
        label, paragraphs, chars = overview[pos]
        overview[pos] = (label, paragraphs + 1, chars + len(segment.text))
    return overview


def first_segment(document: Document, section: str) -> Optional[Segment]:
    for segment in document.segments:
        if segment.section == section:
            return segment
    return None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Split a filing HTML file into PART sections.")
    parser.add_argument("--fixture", required=True, help="Path to filing HTML file.")
    parser.add_argument(
        "--min-chars",
        type=int,
        default=0,
        help="Drop paragraphs shorter than this many characters (default: 0).",
    )
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    html = Path(args.fixture).read_text(encoding="utf-8", errors="replace")
    document = parse_filing_html(html, args.min_chars)

    print(f"segments: {len(document)}")
    for label, paragraphs, chars in section_overview(document):
        segment = first_segment(document, label)
        preview = segment.text[:120] if segment is not None else ""
        print(f"{label}: {paragraphs} paragraphs, {chars} chars | {preview}")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
