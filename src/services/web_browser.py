from __future__ import annotations

import logging
import re
from html.parser import HTMLParser
from typing import List, Optional

import httpx
from pydantic import BaseModel

logger = logging.getLogger(__name__)

_SKIP_TAGS = {"script", "style", "noscript", "template", "svg"}


class WebBrowsingResult(BaseModel):
    content: str
    title: str
    url: str


class _TextExtractor(HTMLParser):
    def __init__(self):
        super().__init__(convert_charrefs=True)
        self.title_parts: List[str] = []
        self.text_parts: List[str] = []
        self._in_title = False
        self._skip_depth = 0

    def handle_starttag(self, tag, attrs):
        if tag in _SKIP_TAGS:
            self._skip_depth += 1
        elif tag == "title":
            self._in_title = True

    def handle_endtag(self, tag):
        if tag in _SKIP_TAGS and self._skip_depth:
            self._skip_depth -= 1
        elif tag == "title":
            self._in_title = False

    def handle_data(self, data):
        if self._in_title:
            self.title_parts.append(data)
        elif not self._skip_depth:
            self.text_parts.append(data)


def _collapse(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip()


def extract_page(html: str, url: str) -> WebBrowsingResult:
    parser = _TextExtractor()
    parser.feed(html)
    parser.close()
    title = _collapse("".join(parser.title_parts)) or url
    return WebBrowsingResult(content=_collapse(" ".join(parser.text_parts)), title=title, url=url)


async def browse_web_page(url: str, client: Optional[httpx.AsyncClient] = None) -> WebBrowsingResult:
    """Fetch a page and return its title and visible text."""
    logger.info("Browsing %s", url)
    if client is not None:
        resp = await client.get(url, follow_redirects=True)
    else:
        async with httpx.AsyncClient(timeout=15, follow_redirects=True) as c:
            resp = await c.get(url)
    resp.raise_for_status()
    return extract_page(resp.text, str(resp.url))
