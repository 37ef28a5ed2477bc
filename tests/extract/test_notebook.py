"""Tests for the Kindle notebook scraper.

HTTP is replaced by a mocked requests session serving canned notebook pages.
"""

from unittest.mock import MagicMock

import pytest
import requests

from catalog import Source, generate_book_id
from extract.errors import (
    CookieFileNotFoundError,
    InvalidRegionError,
    NotAuthenticatedError,
    NotebookError,
)
from extract.notebook import (
    AmazonRegion,
    NotebookClient,
    load_cookies,
    parse_book_list,
    parse_highlights_page,
    scrape_notebook,
)

LIBRARY_PAGE = """
<html><body>
<div id="kp-notebook-library">
  <div id="B000FC0PDA" class="a-row kp-notebook-library-each-book">
    <h2 class="kp-notebook-searchable">Dune</h2>
    <p class="kp-notebook-searchable">By: Frank Herbert</p>
  </div>
  <div id="B00K0OI42W" class="a-row kp-notebook-library-each-book">
    <h2 class="kp-notebook-searchable">Emma</h2>
    <p class="kp-notebook-searchable"></p>
  </div>
  <div class="a-row kp-notebook-library-each-book">
    <h2 class="kp-notebook-searchable">No ASIN</h2>
  </div>
  <div id="B0EMPTYTTL" class="a-row kp-notebook-library-each-book">
    <h2 class="kp-notebook-searchable">  </h2>
  </div>
</div>
</body></html>
"""


def annotations_page(highlights, next_token="", content_limit_state=""):
    rows = []
    for text, note, location in highlights:
        rows.append(
            f"""
            <div class="a-row a-spacing-base">
              <span id="kp-annotation-location">{location}</span>
              <span id="highlight">{text}</span>
              <span id="note">{note}</span>
            </div>
            """
        )
    return f"""
    <html><body>
    <div id="kp-notebook-annotations">{"".join(rows)}</div>
    <input type="hidden" class="kp-notebook-annotations-next-page-start" value="{next_token}">
    <input type="hidden" class="kp-notebook-content-limit-state" value="{content_limit_state}">
    </body></html>
    """


def make_response(text, status_code=200):
    response = MagicMock()
    response.text = text
    response.status_code = status_code
    response.ok = 200 <= status_code < 400
    return response


@pytest.fixture
def cookie_file(tmp_path):
    path = tmp_path / "cookies.txt"
    path.write_text(
        "# Netscape HTTP Cookie File\n"
        "\n"
        ".amazon.com\tTRUE\t/\tTRUE\t1999999999\tsession-id\t123-456\n"
        "#HttpOnly_.amazon.com\tTRUE\t/\tTRUE\t1999999999\tat-main\tsecret\n"
        ".example.org\tTRUE\t/\tFALSE\t1999999999\ttracker\tnope\n"
        "malformed line\n",
        encoding="utf-8",
    )
    return path


class TestAmazonRegion:
    def test_known_regions(self):
        us = AmazonRegion.from_code("us")
        assert us.domain == "amazon.com"
        assert us.notebook_url == "https://read.amazon.com/notebook"

        uk = AmazonRegion.from_code("UK")
        assert uk.domain == "amazon.co.uk"
        assert AmazonRegion.from_code("gb").domain == "amazon.co.uk"

    def test_invalid_region(self):
        with pytest.raises(InvalidRegionError):
            AmazonRegion.from_code("xyz")


class TestLoadCookies:
    def test_loads_domain_cookies(self, cookie_file):
        jar = load_cookies(cookie_file, "amazon.com")

        assert jar.get("session-id") == "123-456"
        assert jar.get("at-main") == "secret"
        assert jar.get("tracker") is None

    def test_other_storefronts_are_ignored(self, tmp_path):
        path = tmp_path / "cookies.txt"
        path.write_text(
            ".amazon.com\tTRUE\t/\tTRUE\t1999999999\tsession-id\tUS\n"
            ".amazon.com.au\tTRUE\t/\tTRUE\t1999999999\tsession-id\tAU\n"
            ".amazon.com.br\tTRUE\t/\tTRUE\t1999999999\tat-main\tBR\n"
            "read.amazon.com\tFALSE\t/\tTRUE\t1999999999\tcsm-hit\tREAD\n",
            encoding="utf-8",
        )

        jar = load_cookies(path, "amazon.com")

        assert jar.get("session-id") == "US"
        assert jar.get("at-main") is None
        assert jar.get("csm-hit", domain="read.amazon.com") == "READ"
        assert {cookie.domain for cookie in jar} == {".amazon.com", "read.amazon.com"}

    def test_missing_file(self, tmp_path):
        with pytest.raises(CookieFileNotFoundError):
            load_cookies(tmp_path / "cookies.txt", "amazon.com")

    def test_no_matching_cookies(self, cookie_file):
        with pytest.raises(NotebookError):
            load_cookies(cookie_file, "amazon.de")


class TestParsers:
    def test_parse_book_list(self):
        books = parse_book_list(LIBRARY_PAGE)

        assert [(b.asin, b.title, b.author) for b in books] == [
            ("B000FC0PDA", "Dune", "Frank Herbert"),
            ("B00K0OI42W", "Emma", None),
        ]

    def test_parse_highlights_page(self):
        html = annotations_page(
            [
                ("Fear is the mind-killer.", "Litany", "Location: 120"),
                ("Fear is the mind-killer.", "", "Location: 120"),
                ("A second passage", "", "Location: 300"),
                ("", "orphan note", "Location: 400"),
            ],
            next_token="TOKEN-2",
            content_limit_state="STATE",
        )

        page = parse_highlights_page(html)

        assert [h.text for h in page.highlights] == ["Fear is the mind-killer.", "A second passage"]
        first = page.highlights[0]
        assert first.note == "Litany"
        assert first.location.position == "Location: 120"
        assert first.created_at is None
        assert first.source == Source.KINDLE
        assert page.highlights[1].note is None
        assert page.next_token == "TOKEN-2"
        assert page.content_limit_state == "STATE"

    def test_last_page_has_no_token(self):
        page = parse_highlights_page(annotations_page([("Only", "", "1")]))

        assert page.next_token is None
        assert page.content_limit_state is None


class TestNotebookClient:
    @pytest.fixture
    def session(self):
        return MagicMock()

    @pytest.fixture
    def client(self, session):
        region = AmazonRegion.from_code("us")
        return NotebookClient(region, requests.cookies.RequestsCookieJar(), 0, session=session)

    def test_fetch_book_list(self, client, session):
        session.get.return_value = make_response(LIBRARY_PAGE)

        books = client.fetch_book_list()

        assert [b.title for b in books] == ["Dune", "Emma"]
        url = session.get.call_args.args[0]
        assert url == "https://read.amazon.com/notebook"

    def test_sign_in_page_is_not_authenticated(self, client, session):
        session.get.return_value = make_response('<form><input id="ap_email"></form>')

        with pytest.raises(NotAuthenticatedError):
            client.fetch_book_list()

    def test_http_error_is_not_authenticated(self, client, session):
        session.get.return_value = make_response("", status_code=403)

        with pytest.raises(NotAuthenticatedError):
            client.fetch_book_list()

    def test_connection_error_wrapped(self, client, session):
        session.get.side_effect = requests.ConnectionError("boom")

        with pytest.raises(NotebookError):
            client.fetch_book_list()

    def test_follows_pagination(self, client, session):
        session.get.side_effect = [
            make_response(annotations_page([("One", "", "1")], "T2", "S2")),
            make_response(annotations_page([("Two", "", "2"), ("One", "", "1")], "T3", "")),
            make_response(annotations_page([("Three", "", "3")])),
        ]

        highlights = client.fetch_book_highlights("B000FC0PDA")

        assert [h.text for h in highlights] == ["One", "Two", "Three"]
        params = [call.kwargs["params"] for call in session.get.call_args_list]
        assert params == [
            {"asin": "B000FC0PDA"},
            {"asin": "B000FC0PDA", "token": "T2", "contentLimitState": "S2"},
            {"asin": "B000FC0PDA", "token": "T3"},
        ]

    def test_repeated_token_stops_pagination(self, client, session):
        session.get.return_value = make_response(annotations_page([("Loop", "", "1")], "SAME"))

        highlights = client.fetch_book_highlights("B000FC0PDA")

        assert [h.text for h in highlights] == ["Loop"]
        assert session.get.call_count == 2


def test_scrape_notebook(cookie_file, monkeypatch):
    session = MagicMock()
    session.get.side_effect = [
        make_response(LIBRARY_PAGE),
        make_response(annotations_page([("Fear is the mind-killer.", "", "120")])),
        make_response(annotations_page([])),
    ]
    monkeypatch.setattr("extract.notebook.requests.Session", lambda: session)

    books = scrape_notebook(cookie_file, "us", request_interval=0)

    assert [b.title for b in books] == ["Dune", "Emma"]
    assert books[0].id == generate_book_id("Dune", "Frank Herbert")
    assert books[0].sources == [Source.KINDLE]
    assert [h.text for h in books[0].highlights] == ["Fear is the mind-killer."]
    assert books[1].highlights == []
    session.close.assert_called_once()


def test_scrape_notebook_invalid_region(cookie_file):
    with pytest.raises(InvalidRegionError):
        scrape_notebook(cookie_file, "atlantis")
