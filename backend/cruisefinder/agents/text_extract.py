from __future__ import annotations

import re
from typing import Callable, Dict, List, Mapping
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Comment, NavigableString, Tag

# 単位付きの値は単位まで含めて捕捉する（"Length" が別の数値を拾わないように）
SPEC_PATTERNS: Dict[str, re.Pattern[str]] = {
    "gross_tonnage": re.compile(r"Gross [Tt]onnage:?\s*([0-9,]+)"),
    "passengers": re.compile(r"Passengers:?\s*([0-9,-]+)"),
    "crew": re.compile(r"\bCrew:?\s*([0-9,]+)"),
    "length": re.compile(r"\bLength(?:\s+overall)?:?\s*([0-9][0-9,.]*\s*m(?:etres|eters)?)\b"),
    "beam": re.compile(r"\bBeam:?\s*([0-9][0-9,.]*\s*m(?:etres|eters)?)\b"),
    "draft": re.compile(r"\bDraft:?\s*([0-9][0-9,.]*\s*m(?:etres|eters)?)\b"),
    "decks": re.compile(r"\bDecks:?\s*([0-9]+)"),
    "cabins": re.compile(r"\bCabins:?\s*([0-9,]+)"),
    "year_built": re.compile(r"Year [Bb]uilt:?\s*([0-9]{4})"),
    "last_refurbished": re.compile(r"Refurbished:?\s*([0-9]{4})"),
    "speed": re.compile(r"\bSpeed:?\s*([0-9][0-9.]*\s*(?:knots|kn))\b"),
    "cruise_line": re.compile(r"Cruise [Ll]ine:?[ \t]*([A-Za-z][A-Za-z&'. -]*[A-Za-z])"),
}

SPEC_NODE_SELECTOR = "table td, div"
# 入れ子のコンテナは自分自身が走査されるので、外側のテキストには含めない
BLOCK_TAGS = frozenset({"div", "table", "td", "script", "style"})
STATUS_PHRASES = ("Current position", "Last position")


def _clean(text: str) -> str:
    return re.sub(r"\s+", " ", text or "").strip()


def own_text(node: Tag) -> str:
    """入れ子のブロック要素を除いたノード自身のテキスト。ブロックの境目は改行にする。"""
    parts: List[str] = []
    for child in node.children:
        if isinstance(child, Tag):
            if child.name in BLOCK_TAGS or child.name == "br":
                parts.append("\n")
            else:
                parts.append(own_text(child))
        elif isinstance(child, NavigableString) and not isinstance(child, Comment):
            parts.append(str(child))
    return "".join(parts)


class SpecificationExtractor:
    """ページ内のテキストノードを順に走査し、名前付き正規表現で諸元を抜き出す。

    同じキーは最初に一致した値を採用し、後続の一致は捨てる。
    """

    def __init__(self, patterns: Mapping[str, re.Pattern[str]] | None = None):
        self.patterns = dict(SPEC_PATTERNS if patterns is None else patterns)

    def match_text(self, text: str, into: Dict[str, str] | None = None) -> Dict[str, str]:
        record = {} if into is None else into
        for key, pattern in self.patterns.items():
            if key in record:
                continue
            m = pattern.search(text)
            if m:
                record[key] = m.group(1).strip()
        return record

    def extract(self, soup: BeautifulSoup) -> Dict[str, str]:
        record: Dict[str, str] = {}
        for node in soup.select(SPEC_NODE_SELECTOR):
            text = own_text(node).strip()
            if not text:
                continue
            self.match_text(text, record)
            if len(record) == len(self.patterns):
                break
        return record


default_extractor = SpecificationExtractor()


def extract_specifications(soup: BeautifulSoup) -> Dict[str, str]:
    return default_extractor.extract(soup)


def extract_amenities(soup: BeautifulSoup, *, limit: int | None = None) -> List[str]:
    """リスト項目のうち 5〜100 文字のものを設備・特徴として拾う。"""
    items: List[str] = []
    for li in soup.select("ul li"):
        text = li.get_text().strip()
        if 5 < len(text) < 100:
            items.append(text)
            if limit is not None and len(items) >= limit:
                break
    return items


def extract_status(soup: BeautifulSoup) -> str | None:
    """"Current position"/"Last position" を含む最も内側のdivの文言。"""
    for div in soup.find_all("div"):
        text = div.get_text()
        if not any(p in text for p in STATUS_PHRASES):
            continue
        inner = [d for d in div.find_all("div") if any(p in d.get_text() for p in STATUS_PHRASES)]
        if not inner:
            return _clean(text)
    return None


def extract_links(soup: BeautifulSoup, selector: str, base_url: str) -> List[Dict[str, str]]:
    links: List[Dict[str, str]] = []
    for a in soup.select(selector):
        text = a.get_text().strip()
        href = a.get("href")
        if not text or not href:
            continue
        links.append({"title": text, "url": urljoin(base_url, href)})
    return links


def extract_table_rows(
    soup: BeautifulSoup,
    accept_headers: Callable[[List[str]], bool],
) -> List[Dict[str, str]]:
    """見出し(th)が条件を満たす表の各行を {見出し: セル} にする。先頭行は見出しとして飛ばす。"""
    rows: List[Dict[str, str]] = []
    for table in soup.find_all("table"):
        headers = [th.get_text().strip() for th in table.find_all("th")]
        if not accept_headers(headers):
            continue
        for i, tr in enumerate(table.find_all("tr")):
            if i == 0:
                continue
            row: Dict[str, str] = {}
            for k, td in enumerate(tr.find_all("td")):
                if k < len(headers) and headers[k]:
                    row[headers[k]] = td.get_text().strip()
            if row:
                rows.append(row)
    return rows


def headers_mention(*words: str) -> Callable[[List[str]], bool]:
    def accept(headers: List[str]) -> bool:
        lowered = [h.lower() for h in headers]
        return any(w in h for h in lowered for w in words)

    return accept


def cell_texts(row: Tag) -> List[str]:
    return [td.get_text().strip() for td in row.find_all("td")]


def joined_text(node: Tag, selector: str) -> str:
    return " ".join(el.get_text().strip() for el in node.select(selector)).strip()
