"""
Link extraction utilities.

Pulls every URL a page references (anchors, src/srcset, data-* attributes,
link tags and fetch/axios calls in inline scripts) and sorts them into
internal, external, api and resource buckets.
"""
import re
from typing import Dict, List
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup

FETCH_RE = re.compile(r"""fetch\s*\(\s*['"`]([^'"`]+)['"`]""")
AXIOS_RE = re.compile(r"""axios\.(?:get|post|put|delete|patch)\s*\(\s*['"`]([^'"`]+)['"`]""")

# (marker in html, navigation pattern), checked in order
JS_NAVIGATION_MARKERS = [
    (("react-router", "ReactRouter"), "React Router"),
    (("vue-router", "VueRouter"), "Vue Router"),
    (("@angular/router",), "Angular Router"),
    (("next/router", "next/navigation"), "Next.js Router"),
    (("pushState", "replaceState"), "History API"),
    (("window.location.hash", "onhashchange"), "Hash-based Routing"),
]


class ExtractedLink:
    """A link found in a page. ``type`` is navigation, resource, api or external."""

    def __init__(self, url: str, text: str, type: str, source: str):
        self.url = url
        self.text = text
        self.type = type
        self.source = source

    def __eq__(self, other):
        return isinstance(other, ExtractedLink) and vars(self) == vars(other)

    def __repr__(self):
        return f"<ExtractedLink {self.type} {self.url} ({self.source})>"


def extract_links(html: str, base_url: str) -> List[ExtractedLink]:
    soup = BeautifulSoup(html or "", "html.parser")
    base_host = urlparse(base_url).hostname or ""
    links: List[ExtractedLink] = []
    seen = set()

    def add_link(url: str, text: str, type: str, source: str) -> None:
        url = url.strip()
        if not url or url.startswith(("javascript:", "mailto:", "tel:", "data:")):
            return
        try:
            absolute = urljoin(base_url, url)
        except ValueError:
            return
        if absolute not in seen:
            seen.add(absolute)
            links.append(ExtractedLink(absolute, text, type, source))

    for element in soup.find_all("a", href=True):
        href = element["href"]
        is_external = href.startswith("http") and base_host not in href
        add_link(href, element.get_text(strip=True), "external" if is_external else "navigation", "href")

    for element in soup.find_all(src=True):
        add_link(element["src"], "", "resource", f"src ({element.name.lower()})")

    for element in soup.find_all(srcset=True):
        # "url1 1x, url2 2x"
        for candidate in element["srcset"].split(","):
            parts = candidate.strip().split()
            if parts:
                add_link(parts[0], "", "resource", "srcset")

    for element in soup.select("[data-src], [data-href], [data-url]"):
        if element.get("data-src"):
            add_link(element["data-src"], "", "resource", "data-src")
        if element.get("data-href"):
            add_link(element["data-href"], "", "navigation", "data-href")
        if element.get("data-url"):
            add_link(element["data-url"], "", "navigation", "data-url")

    for element in soup.find_all("link", href=True):
        rel = " ".join(element.get("rel") or []) or "unknown"
        add_link(element["href"], "", "resource", f"link ({rel})")

    for element in soup.find_all("script", src=False):
        script = element.string or element.get_text() or ""
        for url in FETCH_RE.findall(script):
            add_link(url, "", "api", "fetch()")
        for url in AXIOS_RE.findall(script):
            add_link(url, "", "api", "axios")

    return links


def categorize_links(links: List[ExtractedLink], base_url: str) -> Dict[str, List[ExtractedLink]]:
    base_host = urlparse(base_url).hostname
    categorized: Dict[str, List[ExtractedLink]] = {
        "internal": [],
        "external": [],
        "api": [],
        "resources": [],
    }

    for link in links:
        parsed = urlparse(link.url)
        if not parsed.scheme or not parsed.netloc:
            continue

        if link.type == "api":
            categorized["api"].append(link)
        elif link.type == "resource":
            categorized["resources"].append(link)
        elif parsed.hostname == base_host:
            categorized["internal"].append(link)
        else:
            categorized["external"].append(link)

    return categorized


def detect_javascript_navigation(html: str) -> List[str]:
    return [
        pattern
        for markers, pattern in JS_NAVIGATION_MARKERS
        if any(marker in html for marker in markers)
    ]


def resource_type(link: ExtractedLink) -> str:
    if "img" in link.source or "image" in link.source or link.source == "srcset":
        return "image"
    if "script" in link.source:
        return "script"
    if "stylesheet" in link.source:
        return "stylesheet"
    return "other"
