"""Scrape highlights from Amazon's Kindle notebook (read.amazon.*/notebook).

Authentication is borrowed from a browser session: export the Amazon cookies
in Netscape format (the cookies.txt layout used by curl and most browser
extensions) and point KINDLE_COOKIES_PATH at the file.

The notebook does not expose highlight timestamps, so every Highlight built
here has created_at=None; merging with the clippings file fills them in.
"""

import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import requests
from bs4 import BeautifulSoup
from requests.cookies import RequestsCookieJar

from catalog import Book, Highlight, Location, Source
from common.logger import get_logger

from .errors import (
    CookieFileNotFoundError,
    InvalidRegionError,
    NotAuthenticatedError,
    NotebookError,
)

logger = get_logger(__name__)

USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

# Markers of Amazon's sign-in form, served with a 200 when cookies are stale
SIGN_IN_MARKERS = ("ap_email", "signIn")

REGIONS: dict[str, tuple[str, str]] = {
    "us": ("amazon.com", "https://read.amazon.com/notebook"),
    "uk": ("amazon.co.uk", "https://read.amazon.co.uk/notebook"),
    "gb": ("amazon.co.uk", "https://read.amazon.co.uk/notebook"),
    "de": ("amazon.de", "https://read.amazon.de/notebook"),
    "fr": ("amazon.fr", "https://read.amazon.fr/notebook"),
    "es": ("amazon.es", "https://read.amazon.es/notebook"),
    "it": ("amazon.it", "https://read.amazon.it/notebook"),
    "jp": ("amazon.co.jp", "https://read.amazon.co.jp/notebook"),
    "ca": ("amazon.ca", "https://read.amazon.ca/notebook"),
    "au": ("amazon.com.au", "https://read.amazon.com.au/notebook"),
    "in": ("amazon.in", "https://read.amazon.in/notebook"),
    "br": ("amazon.com.br", "https://read.amazon.com.br/notebook"),
    "mx": ("amazon.com.mx", "https://read.amazon.com.mx/notebook"),
}


@dataclass(frozen=True)
class AmazonRegion:
    """Amazon storefront hosting a Kindle notebook."""

    code: str
    domain: str
    notebook_url: str

    @classmethod
    def from_code(cls, code: str) -> "AmazonRegion":
        """Look up a region by code (us, uk, de, ...), case-insensitively.

        Raises:
            InvalidRegionError: If the code is unknown
        """
        code = code.strip().lower()
        try:
            domain, notebook_url = REGIONS[code]
        except KeyError:
            raise InvalidRegionError(f"Invalid Amazon region: {code}") from None
        return cls(code=code, domain=domain, notebook_url=notebook_url)


@dataclass
class NotebookBook:
    """A book entry of the notebook library sidebar."""

    asin: str
    title: str
    author: str | None


@dataclass
class HighlightsPage:
    """One page of a book's annotations plus the pagination state."""

    highlights: list[Highlight]
    next_token: str | None
    content_limit_state: str | None


def load_cookies(path: Path, domain: str) -> RequestsCookieJar:
    """
    Load cookies for an Amazon domain from a Netscape cookie file.

    Each data line holds seven tab-separated fields:
    domain, include-subdomains flag, path, secure, expiry, name, value.
    Only cookies of the domain itself or its subdomains are kept.

    Raises:
        CookieFileNotFoundError: If the file doesn't exist
        NotebookError: If the file cannot be read or holds no usable cookie
    """
    path = path.expanduser()
    if not path.exists():
        raise CookieFileNotFoundError(f"Cookie file not found: {path}")

    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise NotebookError(f"Failed to read cookie file: {e}") from e

    jar = RequestsCookieJar()
    for line in content.splitlines():
        line = line.strip()
        # "#HttpOnly_" prefixes mark real cookies, other "#" lines are comments
        if line.startswith("#HttpOnly_"):
            line = line[len("#HttpOnly_") :]
        elif not line or line.startswith("#"):
            continue

        parts = line.split("\t")
        if len(parts) < 7:
            continue

        # amazon.com must not pick up amazon.com.au or amazon.com.br cookies
        cookie_domain = parts[0].lstrip(".")
        if cookie_domain != domain and not cookie_domain.endswith(f".{domain}"):
            continue
        jar.set(parts[5], parts[6], domain=parts[0], path=parts[2] or "/")

    if not jar:
        raise NotebookError(f"No cookies for {domain} found in {path}")

    return jar


def _text(element: Any) -> str:
    return element.get_text().strip() if element is not None else ""


def parse_book_list(html: str) -> list[NotebookBook]:
    """Parse the library sidebar of the notebook page."""
    soup = BeautifulSoup(html, "html.parser")
    books = []

    for entry in soup.select(".kp-notebook-library-each-book"):
        asin = entry.get("id") or ""
        if not asin:
            continue

        title = _text(entry.select_one("h2.kp-notebook-searchable"))
        if not title:
            continue

        author_text = _text(entry.select_one("p.kp-notebook-searchable"))
        for prefix in ("By:", "by:"):
            if author_text.startswith(prefix):
                author_text = author_text[len(prefix) :].strip()

        books.append(NotebookBook(asin=asin, title=title, author=author_text or None))

    return books


def _input_value(soup: BeautifulSoup, selector: str) -> str | None:
    element = soup.select_one(selector)
    if element is None:
        return None
    return element.get("value") or None


def parse_highlights_page(html: str) -> HighlightsPage:
    """Parse one annotations page of a book.

    Highlights repeated on the same page are kept once.
    """
    soup = BeautifulSoup(html, "html.parser")
    highlights = []
    seen: set[str] = set()

    for container in soup.select(".a-row.a-spacing-base"):
        text = _text(container.select_one("#highlight"))
        if not text or text in seen:
            continue
        seen.add(text)

        highlights.append(
            Highlight.create(
                text=text,
                source=Source.KINDLE,
                note=_text(container.select_one("#note")) or None,
                location=Location(
                    position=_text(container.select_one("#kp-annotation-location")) or None
                ),
            )
        )

    return HighlightsPage(
        highlights=highlights,
        next_token=_input_value(soup, ".kp-notebook-annotations-next-page-start"),
        content_limit_state=_input_value(soup, ".kp-notebook-content-limit-state"),
    )


class NotebookClient:
    """HTTP client for one region's Kindle notebook.

    Requests are spaced at least request_interval seconds apart.
    """

    TIMEOUT = 30  # seconds

    def __init__(
        self,
        region: AmazonRegion,
        cookies: RequestsCookieJar,
        request_interval: float = 1.0,
        session: requests.Session | None = None,
    ):
        """Initialize notebook client.

        Args:
            region: Amazon region hosting the notebook
            cookies: Authenticated Amazon cookies
            request_interval: Minimum seconds between two requests
            session: Optional pre-built session (used by tests)
        """
        self.region = region
        self.request_interval = request_interval
        self._last_request = 0.0
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": USER_AGENT})
        self.session.cookies.update(cookies)

    def _get(self, params: dict[str, str] | None = None) -> requests.Response:
        wait = self.request_interval - (time.monotonic() - self._last_request)
        if wait > 0:
            time.sleep(wait)

        try:
            response = self.session.get(
                self.region.notebook_url, params=params, timeout=self.TIMEOUT
            )
        except requests.RequestException as e:
            raise NotebookError(f"HTTP request failed: {e}") from e
        finally:
            self._last_request = time.monotonic()

        if not response.ok:
            raise NotAuthenticatedError(
                f"Notebook request returned HTTP {response.status_code}; "
                "the Amazon cookies are probably missing or expired"
            )
        if any(marker in response.text for marker in SIGN_IN_MARKERS):
            raise NotAuthenticatedError(
                "Not authenticated with Amazon. Please provide valid cookies."
            )
        return response

    def fetch_book_list(self) -> list[NotebookBook]:
        """Fetch the books listed in the notebook sidebar."""
        return parse_book_list(self._get().text)

    def fetch_book_highlights(self, asin: str) -> list[Highlight]:
        """Fetch every highlight of a book, following pagination."""
        highlights: list[Highlight] = []
        seen_text: set[str] = set()
        seen_tokens: set[str] = set()
        params = {"asin": asin}

        while True:
            page = parse_highlights_page(self._get(params).text)
            for highlight in page.highlights:
                if highlight.text not in seen_text:
                    seen_text.add(highlight.text)
                    highlights.append(highlight)

            if page.next_token is None or page.next_token in seen_tokens:
                break
            seen_tokens.add(page.next_token)

            params = {"asin": asin, "token": page.next_token}
            if page.content_limit_state:
                params["contentLimitState"] = page.content_limit_state

        return highlights

    def close(self) -> None:
        self.session.close()


def scrape_notebook(
    cookies_path: Path,
    region_code: str = "us",
    request_interval: float = 1.0,
) -> list[Book]:
    """
    Scrape every book and highlight from the Kindle notebook.

    Args:
        cookies_path: Netscape cookie file with Amazon session cookies
        region_code: Amazon region (us, uk, de, ...)
        request_interval: Minimum seconds between requests

    Returns:
        Books tagged with Source.KINDLE

    Raises:
        InvalidRegionError: If the region code is unknown
        CookieFileNotFoundError: If the cookie file doesn't exist
        NotAuthenticatedError: If Amazon rejects the cookies
        NotebookError: If a request fails
    """
    region = AmazonRegion.from_code(region_code)
    cookies = load_cookies(cookies_path, region.domain)
    client = NotebookClient(region, cookies, request_interval=request_interval)

    try:
        entries = client.fetch_book_list()
        logger.info(f"Kindle notebook lists [bold]{len(entries)}[/bold] books")

        books = []
        for i, entry in enumerate(entries, 1):
            logger.debug(f"[{i}/{len(entries)}] Fetching highlights for {entry.title!r}")
            books.append(
                Book.create(
                    entry.title,
                    entry.author,
                    Source.KINDLE,
                    highlights=client.fetch_book_highlights(entry.asin),
                )
            )
    finally:
        client.close()

    logger.info(
        f"Kindle notebook: [bold]{len(books)}[/bold] books, "
        f"[bold]{sum(len(b.highlights) for b in books)}[/bold] highlights"
    )
    return books
