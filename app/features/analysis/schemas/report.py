from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class ReportMetadata(BaseModel):
    report_id: str
    target_url: str
    analysis_date: datetime
    analysis_duration: int  # milliseconds
    pages_analyzed: int = 0
    failed_modules: List[str] = Field(default_factory=list)


class ExecutiveSummary(BaseModel):
    overall_score: int = Field(ge=0, le=100)
    key_findings: List[str] = Field(default_factory=list)
    critical_issues: List[str] = Field(default_factory=list)
    technology_stack: List[str] = Field(default_factory=list)


class CrawlSection(BaseModel):
    total_pages: int
    routing_strategy: str
    api_endpoints: int
    static_resources: int
    response_time: int
    status_code: int


class ReportSections(BaseModel):
    crawl: Optional[CrawlSection] = None


class ForensicReport(BaseModel):
    metadata: ReportMetadata
    summary: ExecutiveSummary
    sections: ReportSections
