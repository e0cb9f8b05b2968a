"""
Email discovery and verification for linkd.

For one person the finder:
1. resolves the company's mail domain,
2. learns the company's address format from its homepage when published,
3. verifies likely address patterns (``emailSource = guess``),
4. falls back to searching the web for a published address on that domain
   (``emailSource = search``).

Addresses are verified with ZeroBounce. "Not found" is a normal result
(``emailSource = none``) and is never retried.
"""

import re
import unicodedata
from typing import Any, Callable, Dict, Iterable, List, Optional
from urllib.parse import urlparse

import requests
import tldextract

from linkd.config import get_settings
from linkd.schemas import EmailResult, Person
from linkd.tools.scraper import EMAIL_PATTERN, ContentScraper
from linkd.utils.logger import logger

ZEROBOUNCE_URL = "https://api.zerobounce.net/v2/validate"
ACCEPTED_STATUSES = {"valid", "catch-all", "catch_all", "acceptable"}

# Hosts that never serve as a company's own mail domain.
SOCIAL_HOSTS = {
    "linkedin.com", "facebook.com", "twitter.com", "x.com", "instagram.com",
    "youtube.com", "wikipedia.org", "crunchbase.com", "glassdoor.com",
    "indeed.com", "bloomberg.com", "zoominfo.com", "rocketreach.co",
    "github.com", "medium.com", "reddit.com", "google.com", "apple.com",
}

_COMPANY_SUFFIXES = re.compile(
    r"\b(inc|llc|ltd|corp|corporation|co|company|group|holdings|plc|gmbh|technologies|labs)\b\.?",
    re.IGNORECASE,
)

# Bundled public-suffix snapshot, private suffixes (github.io) included.
_extract = tldextract.TLDExtract(suffix_list_urls=(), include_psl_private_domains=True)

# Country subdomain labels large companies use for regional mail (ca.ibm.com).
_COUNTRY_LABELS: Dict[str, str] = {
    "canada": "ca", "ontario": "ca", "quebec": "ca", "british columbia": "ca", "alberta": "ca",
    "toronto": "ca", "ottawa": "ca", "montreal": "ca", "vancouver": "ca", "calgary": "ca",
    "united kingdom": "uk", "uk": "uk", "england": "uk", "scotland": "uk", "london": "uk",
    "germany": "de", "berlin": "de", "munich": "de",
    "france": "fr", "paris": "fr",
    "india": "in", "bangalore": "in", "bengaluru": "in", "hyderabad": "in",
    "australia": "au", "sydney": "au", "melbourne": "au",
    "japan": "jp", "tokyo": "jp",
    "brazil": "br", "mexico": "mx", "spain": "es", "italy": "it", "netherlands": "nl",
    "ireland": "ie", "dublin": "ie", "switzerland": "ch", "sweden": "se", "israel": "il",
    "singapore": "sg", "china": "cn",
}


# ---------------------------------------------------------------------------
# Domain helpers
# ---------------------------------------------------------------------------

def _hostname(url_or_host: str) -> str:
    text = url_or_host.strip().lower()
    if "//" not in text:
        text = f"http://{text}"
    host = (urlparse(text).hostname or "").strip(".")
    return host[4:] if host.startswith("www.") else host


def apex_domain(url_or_host: str) -> Optional[str]:
    """Return the registrable domain of a URL or host.

    ``https://cs.unimelb.edu.au/`` gives ``unimelb.edu.au`` and
    ``acme.github.io`` stays whole. Regional hosts collapse too
    (``ca.ibm.com`` gives ``ibm.com``); see ``location_domain``.
    """
    if not url_or_host:
        return None
    ext = _extract(_hostname(url_or_host))
    if ext.domain and ext.suffix:
        return f"{ext.domain}.{ext.suffix}"
    return None


def country_label(location: Optional[str]) -> Optional[str]:
    """Country subdomain label for a free-text location ("Ottawa, Canada" → ``ca``)."""
    if not location:
        return None
    parts = [p.strip().lower() for p in location.split(",") if p.strip()]
    for part in reversed(parts):
        if part in _COUNTRY_LABELS:
            return _COUNTRY_LABELS[part]
    return None


def _is_regional(host: str, apex: str) -> bool:
    label, _, rest = host.partition(".")
    return rest == apex and label in set(_COUNTRY_LABELS.values())


def location_domain(hosts: Iterable[str], apex: str, location: Optional[str]) -> Optional[str]:
    """The ``<country>.<apex>`` host among ``hosts`` matching ``location``, if one is listed."""
    label = country_label(location)
    if not label:
        return None
    wanted = f"{label}.{apex}"
    for host in hosts:
        if _hostname(host) == wanted:
            return wanted
    return None


def company_slug(company: str) -> str:
    base = _COMPANY_SUFFIXES.sub("", company)
    base = unicodedata.normalize("NFKD", base).encode("ascii", "ignore").decode()
    return re.sub(r"[^a-z0-9]", "", base.lower())


def _name_parts(name: str) -> Dict[str, str]:
    ascii_name = unicodedata.normalize("NFKD", name).encode("ascii", "ignore").decode()
    parts = [re.sub(r"[^a-z]", "", p) for p in ascii_name.lower().split()]
    parts = [p for p in parts if p]
    first = parts[0] if parts else ""
    last = parts[-1] if len(parts) > 1 else ""
    return {"first": first, "last": last, "f": first[:1]}


# ---------------------------------------------------------------------------
# Pattern helpers
# ---------------------------------------------------------------------------

PATTERN_TEMPLATES: Dict[str, str] = {
    "first.last": "{first}.{last}",
    "first_last": "{first}_{last}",
    "firstlast": "{first}{last}",
    "f.last": "{f}.{last}",
    "flast": "{f}{last}",
    "first": "{first}",
    "last": "{last}",
    "first-last": "{first}-{last}",
}
COMMON_PATTERNS = ["first.last", "firstlast", "flast", "first", "first_last", "last", "first-last"]


def detect_pattern(local_part: str) -> str:
    """Guess the address format from one known local part."""
    if re.fullmatch(r"[a-z]\.[a-z]+", local_part.lower()):
        return "f.last"
    if "." in local_part:
        return "first.last"
    if "_" in local_part:
        return "first_last"
    if "-" in local_part:
        return "first-last"
    if re.fullmatch(r"[a-z]+[A-Z][a-z]*", local_part):
        return "firstlast"
    if re.fullmatch(r"[a-z]+", local_part) and len(local_part) > 6:
        return "firstlast"
    if re.fullmatch(r"[a-z]+", local_part):
        return "first"
    return "first.last"


def candidate_addresses(name: str, domain: str, pattern: Optional[str] = None) -> List[str]:
    """Addresses to try for ``name`` at ``domain``, detected pattern first."""
    parts = _name_parts(name)
    order = ([pattern] if pattern else []) + [p for p in COMMON_PATTERNS if p != pattern]
    addresses: List[str] = []
    for key in order:
        if not parts["last"] and "{last}" in PATTERN_TEMPLATES[key]:
            continue
        local = PATTERN_TEMPLATES[key].format(**parts)
        address = f"{local}@{domain}"
        if local and address not in addresses:
            addresses.append(address)
    return addresses


def _matches_person(local_part: str, name: str) -> bool:
    parts = _name_parts(name)
    local = local_part.lower()
    if parts["last"] and parts["last"] in local:
        return True
    if parts["first"] and len(parts["first"]) > 2 and parts["first"] in local:
        return True
    return bool(parts["last"]) and local.startswith(parts["f"] + parts["last"])


# ---------------------------------------------------------------------------
# Verification
# ---------------------------------------------------------------------------

def verify_email(email: str, api_key: Optional[str] = None, timeout: Optional[float] = None) -> str:
    """Return the ZeroBounce status for ``email`` ("valid", "invalid", "catch-all", ...).

    Returns "unknown" when no API key is configured.
    """
    settings = get_settings()
    api_key = api_key or settings.zerobounce_api_key
    if not api_key:
        logger.warning("ZEROBOUNCE_API_KEY not set, cannot verify %s", email)
        return "unknown"

    response = requests.get(
        ZEROBOUNCE_URL,
        params={"api_key": api_key, "email": email},
        timeout=timeout or settings.tool_timeout_seconds,
    )
    response.raise_for_status()
    status = str(response.json().get("status", "unknown")).lower()
    logger.info("ZeroBounce %s → %s", email, status)
    return status


# ---------------------------------------------------------------------------
# Finder
# ---------------------------------------------------------------------------

class EmailFinder:
    """Finds and verifies one person's work email."""

    def __init__(
        self,
        search: Optional[Callable[[str], List[Dict[str, Any]]]] = None,
        verify: Optional[Callable[[str], str]] = None,
        scraper: Optional[ContentScraper] = None,
        max_patterns: Optional[int] = None,
    ) -> None:
        if search is None:
            from linkd.tools.search_tools import web_search as search
        self.search = search
        self.verify = verify or verify_email
        self.scraper = scraper or ContentScraper()
        self.max_patterns = max_patterns or get_settings().max_email_patterns

    # -- domain ---------------------------------------------------------------

    def resolve_domain(self, person: Person, hint: Optional[str] = None) -> str:
        """Best-known mail domain for the person's company.

        A regional host (``ca.ibm.com``) is preferred over the apex when the
        person's location matches it and the hint, company page or search
        results show that host.
        """
        if hint:
            host = _hostname(hint)
            apex = apex_domain(hint) or host
            if _is_regional(host, apex):
                return host
            return self._regional(person, apex) or apex
        if person.source == "company_page" and person.web_url is not None:
            apex = apex_domain(str(person.web_url))
            if apex:
                return location_domain([str(person.web_url)], apex, person.location) or apex

        slug = company_slug(person.company)
        results = self.search(f'"{person.company}" official website')
        for result in results:
            apex = apex_domain(result.get("url", ""))
            if apex and apex not in SOCIAL_HOSTS and slug and slug[:4] in apex.replace(".", ""):
                hosts = [r.get("url", "") for r in results]
                domain = location_domain(hosts, apex, person.location) or apex
                logger.info("Resolved %s → %s", person.company, domain)
                return domain
        logger.info("Inferred domain for %s from its name", person.company)
        return f"{slug}.com"

    def _regional(self, person: Person, apex: str) -> Optional[str]:
        label = country_label(person.location)
        if not label:
            return None
        hosts = [r.get("url", "") for r in self.search(f'"{person.company}" site:{label}.{apex}')]
        domain = location_domain(hosts, apex, person.location)
        if domain:
            logger.info("Using regional domain %s for %s", domain, person.name)
        return domain

    def detect_company_pattern(self, domain: str) -> Optional[str]:
        for email in self.scraper.find_emails(f"https://{domain}"):
            local, _, host = email.partition("@")
            if host.lower().endswith(domain):
                pattern = detect_pattern(local)
                logger.info("Detected pattern %s from %s", pattern, email)
                return pattern
        return None

    # -- strategies ---------------------------------------------------------------

    def _accepted(self, email: str) -> bool:
        try:
            return self.verify(email) in ACCEPTED_STATUSES
        except requests.RequestException as exc:
            logger.warning("Verification failed for %s: %s", email, exc)
            return False

    def guess(self, person: Person, domain: str, pattern: Optional[str] = None) -> Optional[str]:
        for email in candidate_addresses(person.name, domain, pattern)[: self.max_patterns]:
            if self._accepted(email):
                return email
        return None

    def research(self, person: Person, domain: str) -> Optional[str]:
        domain_re = re.compile(rf"\b[\w.+-]+@{re.escape(domain)}\b", re.IGNORECASE)
        queries = [
            f'"{person.name}" "{person.company}" email',
            f'"{person.name}" "@{domain}"',
        ]
        tried: set = set()
        for query in queries:
            for result in self.search(query):
                text = f"{result.get('title', '')} {result.get('snippet', '')}"
                for email in domain_re.findall(text):
                    email = email.lower()
                    if email in tried or not EMAIL_PATTERN.fullmatch(email):
                        continue
                    tried.add(email)
                    if _matches_person(email.split("@")[0], person.name) and self._accepted(email):
                        return email
        return None

    def find(self, person: Person, domain_hint: Optional[str] = None) -> EmailResult:
        domain = self.resolve_domain(person, domain_hint)
        pattern = self.detect_company_pattern(domain)

        email = self.guess(person, domain, pattern)
        if email:
            logger.info("Email for %s found by pattern", person.name)
            return EmailResult(name=person.name, role=person.role, company=person.company,
                               email=email, email_source="guess")

        email = self.research(person, domain)
        if email:
            logger.info("Email for %s found by research", person.name)
            return EmailResult(name=person.name, role=person.role, company=person.company,
                               email=email, email_source="search")

        logger.info("No email found for %s at %s", person.name, domain)
        return EmailResult.not_found(person)


def find_and_verify_email(
    person: Person,
    domain_hint: Optional[str] = None,
    finder: Optional[EmailFinder] = None,
) -> EmailResult:
    """Find and verify ``person``'s email; ``emailSource = none`` when not found."""
    return (finder or EmailFinder()).find(person, domain_hint)
