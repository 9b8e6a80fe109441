from __future__ import annotations

import logging

from bs4 import BeautifulSoup

from .base import ResolutionQuery, normalize_name

logger = logging.getLogger(__name__)

MIN_SIGNIFICANT_LEN = 3


def page_title(soup: BeautifulSoup) -> str:
    tag = soup.find("title")
    return tag.get_text().strip() if tag else ""


def page_heading(soup: BeautifulSoup) -> str:
    tag = soup.find("h1")
    return tag.get_text().strip() if tag else ""


def _tokens_overlap(query_tokens: list[str], page_tokens: list[str]) -> bool:
    for word in query_tokens:
        if len(word) < MIN_SIGNIFICANT_LEN:
            continue
        for page_word in page_tokens:
            if word in page_word:
                return True
            # 逆方向（ページ側の語がクエリ語に含まれる）は短い語の偶然一致を避ける
            if len(page_word) >= MIN_SIGNIFICANT_LEN and page_word in word:
                return True
    return False


def validate_page(soup: BeautifulSoup, query: ResolutionQuery | str) -> bool:
    """取得したページが問い合わせた船/港のものかを、タイトルとh1の語の重なりで判定する。

    句読点・冠詞・語順の違い（"Icon Of The Seas" と "Icon of the Seas - Ship Profile"）は許容する。
    タイトルとh1が両方空なら常に不一致。
    """
    name = query.name if isinstance(query, ResolutionQuery) else normalize_name(str(query))
    title = page_title(soup).lower()
    heading = page_heading(soup).lower()
    if not title and not heading:
        logger.info("validation failed for %r: page has no title or heading", name)
        return False

    query_tokens = name.split()
    matched = (
        _tokens_overlap(query_tokens, title.split())
        or _tokens_overlap(query_tokens, heading.split())
        or (bool(name) and (name in title or name in heading))
    )
    if matched:
        logger.debug("validation passed for %r (title=%r)", name, title)
    else:
        logger.info("validation failed for %r: title=%r heading=%r", name, title, heading)
    return matched
