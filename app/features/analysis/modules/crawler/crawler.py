import time
from typing import List, Optional

import httpx

from app.features.analysis.modules.crawler.link_extractor import (
    categorize_links,
    detect_javascript_navigation,
    extract_links,
    resource_type,
)
from app.features.analysis.schemas.analysis import (
    AnalysisPhase,
    APIEndpoint,
    CrawlResults,
    DiscoverySeverity,
    DiscoveryType,
    PageInfo,
    Resource,
    SiteMap,
)
from app.features.analysis.services.context import AnalysisContext
from app.features.analysis.services.module import AnalysisModule
from app.platform.config import settings

# (pattern reported by detect_javascript_navigation, routing strategy), checked in order
ROUTER_STRATEGIES = [
    ("Next.js Router", "Next.js (App Router / Pages Router)"),
    ("React Router", "React SPA with React Router"),
    ("Vue Router", "Vue.js SPA with Vue Router"),
    ("Angular Router", "Angular SPA with Angular Router"),
]


def detect_routing_strategy(html: str, js_navigation: List[str], internal_links: int) -> str:
    """Classify how the site routes between pages."""
    for pattern, strategy in ROUTER_STRATEGIES:
        if pattern in js_navigation:
            return strategy

    html_lower = html.lower()
    if "next" in html_lower or "_next" in html_lower:
        return "Next.js (SSR/SSG)"
    if "react" in html_lower and "root" in html_lower:
        return "React SPA (CSR)"
    if "vue" in html_lower:
        return "Vue.js SPA"
    if "angular" in html_lower:
        return "Angular SPA"
    if "History API" in js_navigation:
        return "SPA with History API"
    if "Hash-based Routing" in js_navigation:
        return "SPA with Hash Routing"
    if internal_links > 10:
        return "Traditional MPA (SSR)"
    return "Unknown"


class CrawlerModule(AnalysisModule):
    """
    Fetches the target page, extracts links and resources and classifies the
    routing architecture. Network failures yield a minimal "Error" result
    instead of raising.
    """

    name = "crawler"
    phase = AnalysisPhase.crawl
    dependencies = []

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        super().__init__()
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            headers={"User-Agent": settings.CRAWLER_USER_AGENT},
            timeout=settings.CRAWLER_TIMEOUT_SECONDS,
            follow_redirects=True,
            transport=self._transport,
        )

    async def execute(self, context: AnalysisContext) -> CrawlResults:
        logger = context.logger
        start = time.perf_counter()

        try:
            async with self._client() as client:
                response = await client.get(context.url)
            html = response.text
        except httpx.HTTPError as e:
            if logger:
                logger.warning(f"Crawler could not fetch {context.url}: {e}")
            context.add_discovery(DiscoveryType.issue, f"Page could not be fetched: {e}", DiscoverySeverity.error)
            return CrawlResults(
                pages=[PageInfo(
                    url=context.url,
                    status_code=0,
                    response_time=_elapsed_ms(start),
                    content_type="error",
                )],
                site_map=SiteMap(root=context.url),
                routing_strategy="Error",
            )

        page = PageInfo(
            url=context.url,
            depth=0,
            status_code=response.status_code,
            response_time=_elapsed_ms(start),
            content_type=response.headers.get("content-type", "text/html"),
            size=len(html),
        )

        links = extract_links(html, context.url)
        categorized = categorize_links(links, context.url)
        js_navigation = detect_javascript_navigation(html)

        if logger:
            logger.info(
                f"Links extracted: total={len(links)} internal={len(categorized['internal'])} "
                f"external={len(categorized['external'])} api={len(categorized['api'])} "
                f"resources={len(categorized['resources'])}"
            )

        static_resources = [
            Resource(url=link.url, type=resource_type(link))
            for link in categorized["resources"]
        ]
        api_endpoints = [APIEndpoint(url=link.url) for link in categorized["api"]]
        routing_strategy = detect_routing_strategy(html, js_navigation, len(categorized["internal"]))

        if logger:
            logger.info(f"Routing strategy detected: {routing_strategy} (js navigation: {js_navigation})")

        context.metrics.pages_crawled += 1
        context.metrics.resources_analyzed += len(static_resources)
        context.add_discovery(DiscoveryType.page, f"Crawled {context.url} ({response.status_code})")
        if response.status_code >= 400:
            context.add_discovery(
                DiscoveryType.issue,
                f"Page responded with HTTP {response.status_code}",
                DiscoverySeverity.critical if response.status_code >= 500 else DiscoverySeverity.error,
            )
        if routing_strategy != "Unknown":
            context.add_discovery(DiscoveryType.technology, f"Routing strategy: {routing_strategy}")

        return CrawlResults(
            pages=[page],
            site_map=SiteMap(root=context.url, pages={context.url: page}),
            routing_strategy=routing_strategy,
            api_endpoints=api_endpoints,
            static_resources=static_resources,
            external_links=[link.url for link in categorized["external"]] if context.options.include_external_links else [],
            js_navigation=js_navigation,
        )


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)
