"""
Report generator.

Turns aggregated analysis results into a scored forensic report.
"""
import uuid
from datetime import datetime, timezone
from typing import Any, Iterable, List, Optional

from app.features.analysis.schemas.analysis import AnalysisResults, CrawlResults
from app.features.analysis.schemas.report import (
    CrawlSection,
    ExecutiveSummary,
    ForensicReport,
    ReportMetadata,
    ReportSections,
)

BASE_SCORE = 70
FAST_RESPONSE_MS = 500
SLOW_RESPONSE_MS = 2000

# substring in a resource URL -> technology name
RESOURCE_TECHNOLOGIES = [
    ("jquery", "jQuery"),
    ("tailwind", "Tailwind CSS"),
    ("bootstrap", "Bootstrap"),
]


def _as_crawl_results(data: Any) -> Optional[CrawlResults]:
    if data is None:
        return None
    if isinstance(data, CrawlResults):
        return data
    return CrawlResults.model_validate(data)


def build_crawl_section(crawl: CrawlResults) -> CrawlSection:
    main_page = crawl.pages[0] if crawl.pages else None
    return CrawlSection(
        total_pages=len(crawl.pages),
        routing_strategy=crawl.routing_strategy,
        api_endpoints=len(crawl.api_endpoints),
        static_resources=len(crawl.static_resources),
        response_time=main_page.response_time if main_page else 0,
        status_code=main_page.status_code if main_page else 0,
    )


def detect_technologies(routing_strategy: str, resource_urls: Iterable[str]) -> List[str]:
    technologies: List[str] = []
    if "Next.js" in routing_strategy:
        technologies.extend(["Next.js", "React"])
    elif "React" in routing_strategy:
        technologies.append("React")
    elif "Vue" in routing_strategy:
        technologies.append("Vue.js")
    elif "Angular" in routing_strategy:
        technologies.append("Angular")

    urls = [url.lower() for url in resource_urls]
    for marker, technology in RESOURCE_TECHNOLOGIES:
        if any(marker in url for url in urls):
            technologies.append(technology)
    return technologies


def calculate_score(crawl: Optional[CrawlSection], technologies: List[str]) -> int:
    score = BASE_SCORE

    if crawl:
        if crawl.response_time < FAST_RESPONSE_MS:
            score += 10
        elif crawl.response_time > SLOW_RESPONSE_MS:
            score -= 10

        if crawl.status_code == 200:
            score += 5
        elif crawl.status_code >= 400:
            score -= 15

        # Modern framework / architecture
        if technologies:
            score += 5
        if crawl.api_endpoints > 0:
            score += 5

    return max(0, min(100, score))


def generate_report(
    url: str,
    results: AnalysisResults,
    duration: int,
    failed_modules: Optional[List[str]] = None,
) -> ForensicReport:
    """
    Args:
        url: analysed URL
        results: aggregate returned by the orchestrator
        duration: wall-clock duration of the run in milliseconds
        failed_modules: names of modules that failed, listed as critical issues
    """
    crawl = _as_crawl_results(results.crawl_data)
    crawl_section = build_crawl_section(crawl) if crawl else None

    key_findings: List[str] = []
    critical_issues: List[str] = []

    if crawl_section:
        key_findings.append(f"Analyzed {crawl_section.total_pages} page(s)")
        key_findings.append(f"Detected routing strategy: {crawl_section.routing_strategy}")
        key_findings.append(f"Found {crawl_section.static_resources} static resources")

        if crawl_section.api_endpoints > 0:
            key_findings.append(f"Discovered {crawl_section.api_endpoints} API endpoint(s)")

        if crawl_section.response_time < FAST_RESPONSE_MS:
            key_findings.append(f"Fast response time: {crawl_section.response_time}ms")
        elif crawl_section.response_time > SLOW_RESPONSE_MS:
            key_findings.append(f"Slow response time: {crawl_section.response_time}ms - needs optimization")

        if crawl_section.status_code >= 400:
            critical_issues.append(f"Page responded with HTTP {crawl_section.status_code}")
        elif crawl_section.status_code == 0:
            critical_issues.append("Page could not be fetched")

    for name in failed_modules or []:
        critical_issues.append(f"Analysis module '{name}' failed")

    technologies = detect_technologies(
        crawl_section.routing_strategy if crawl_section else "",
        (resource.url for resource in crawl.static_resources) if crawl else [],
    )

    return ForensicReport(
        metadata=ReportMetadata(
            report_id=str(uuid.uuid4()),
            target_url=url,
            analysis_date=datetime.now(timezone.utc),
            analysis_duration=duration,
            pages_analyzed=len(crawl.pages) if crawl else 0,
            failed_modules=list(failed_modules or []),
        ),
        summary=ExecutiveSummary(
            overall_score=calculate_score(crawl_section, technologies),
            key_findings=key_findings,
            critical_issues=critical_issues,
            technology_stack=technologies,
        ),
        sections=ReportSections(crawl=crawl_section),
    )
