"""
ContentScraper: static web-page fetcher.

Fetches a page with requests + BeautifulSoup and exposes its visible text
and any email addresses published on it. Used by the email finder to learn
a company's address format from its homepage.
"""

import re
from typing import List, Optional

import requests
from bs4 import BeautifulSoup

from linkd.utils.logger import get_logger

logger = get_logger("scraper")

EMAIL_PATTERN = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")


class ContentScraper:
    """Minimal requests-based scraper with a browser user agent."""

    def __init__(self, timeout: float = 10.0) -> None:
        self.session = requests.Session()
        self.session.headers.update(
            {
                "User-Agent": (
                    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
                    "AppleWebKit/537.36 (KHTML, like Gecko) "
                    "Chrome/91.0.4472.124 Safari/537.36"
                )
            }
        )
        self.timeout = timeout

    def fetch(self, url: str) -> Optional[BeautifulSoup]:
        """Fetch page with requests + BeautifulSoup."""
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
            return BeautifulSoup(response.content, "html.parser")
        except requests.RequestException as e:
            logger.warning("Fetching %s failed: %s", url, e)
            return None

    def page_text(self, soup: BeautifulSoup) -> str:
        for element in soup(["script", "style", "noscript"]):
            element.extract()
        return " ".join(soup.get_text(separator=" ").split())

    def find_emails(self, url: str) -> List[str]:
        """Return email addresses published on ``url`` (mailto links first)."""
        soup = self.fetch(url)
        if soup is None:
            return []

        found: List[str] = []
        for link in soup.find_all("a", href=True):
            href = link["href"]
            if href.lower().startswith("mailto:"):
                found.append(href[7:].split("?")[0].strip())
        found.extend(EMAIL_PATTERN.findall(self.page_text(soup)))

        unique: List[str] = []
        seen: set = set()
        for email in found:
            key = email.lower()
            if key not in seen and EMAIL_PATTERN.fullmatch(email):
                seen.add(key)
                unique.append(email)
        logger.info("Found %d emails on %s", len(unique), url)
        return unique
