from app.features.analysis.schemas.analysis import (
    AnalysisResults,
    APIEndpoint,
    CrawlResults,
    PageInfo,
    Resource,
    SiteMap,
)
from app.features.analysis.schemas.report import CrawlSection
from app.features.analysis.services.report_generator import (
    calculate_score,
    detect_technologies,
    generate_report,
)


def crawl_results(status_code=200, response_time=120, routing="React SPA with React Router", **extra):
    page = PageInfo(url="https://example.com", status_code=status_code, response_time=response_time)
    return CrawlResults(
        pages=[page],
        site_map=SiteMap(root="https://example.com", pages={page.url: page}),
        routing_strategy=routing,
        **extra,
    )


def section(**overrides):
    values = dict(
        total_pages=1,
        routing_strategy="Unknown",
        api_endpoints=0,
        static_resources=0,
        response_time=1000,
        status_code=301,
    )
    values.update(overrides)
    return CrawlSection(**values)


class TestGenerateReport:
    def test_report_from_crawl_results(self):
        results = AnalysisResults(
            crawl_data=crawl_results(
                api_endpoints=[APIEndpoint(url="https://example.com/api/items")],
                static_resources=[Resource(url="https://cdn.example.com/jquery.min.js", type="script")],
            )
        )

        report = generate_report("https://example.com", results, duration=1500)

        assert report.metadata.target_url == "https://example.com"
        assert report.metadata.analysis_duration == 1500
        assert report.metadata.pages_analyzed == 1
        assert report.sections.crawl.api_endpoints == 1
        assert report.summary.technology_stack == ["React", "jQuery"]
        assert "Discovered 1 API endpoint(s)" in report.summary.key_findings
        assert "Fast response time: 120ms" in report.summary.key_findings
        assert report.summary.critical_issues == []
        # 70 + 10 fast + 5 ok + 5 technologies + 5 api
        assert report.summary.overall_score == 95

    def test_crawl_data_as_plain_dict(self):
        results = AnalysisResults(crawl_data=crawl_results().model_dump())

        report = generate_report("https://example.com", results, duration=10)

        assert report.sections.crawl.routing_strategy == "React SPA with React Router"

    def test_without_crawl_data(self):
        report = generate_report("https://example.com", AnalysisResults(), duration=0, failed_modules=["crawler"])

        assert report.sections.crawl is None
        assert report.metadata.pages_analyzed == 0
        assert report.metadata.failed_modules == ["crawler"]
        assert report.summary.critical_issues == ["Analysis module 'crawler' failed"]
        assert report.summary.overall_score == 70

    def test_unreachable_page(self):
        results = AnalysisResults(crawl_data=crawl_results(status_code=0, routing="Error"))

        report = generate_report("https://example.com", results, duration=10)

        assert report.summary.critical_issues == ["Page could not be fetched"]

    def test_http_error_page(self):
        results = AnalysisResults(crawl_data=crawl_results(status_code=503, response_time=2500, routing="Unknown"))

        report = generate_report("https://example.com", results, duration=10)

        assert report.summary.critical_issues == ["Page responded with HTTP 503"]
        assert "Slow response time: 2500ms - needs optimization" in report.summary.key_findings
        assert report.summary.overall_score == 45


class TestScoring:
    def test_base_score_without_crawl(self):
        assert calculate_score(None, []) == 70

    def test_neutral_crawl(self):
        assert calculate_score(section(), []) == 70

    def test_score_is_clamped(self):
        assert calculate_score(section(response_time=10, status_code=200, api_endpoints=3), ["React"]) == 95
        assert 0 <= calculate_score(section(response_time=9000, status_code=500), []) <= 100


class TestDetectTechnologies:
    def test_nextjs_implies_react(self):
        assert detect_technologies("Next.js (SSR/SSG)", []) == ["Next.js", "React"]

    def test_resource_markers(self):
        urls = ["https://cdn.example.com/bootstrap.css", "https://cdn.example.com/TailWind.css"]

        assert detect_technologies("Unknown", urls) == ["Tailwind CSS", "Bootstrap"]

    def test_nothing_detected(self):
        assert detect_technologies("Traditional MPA (SSR)", []) == []
