"""
Analysis Schemas

Core value types of the analysis engine plus the request/response models
of the analysis API endpoints.
"""
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class AnalysisPhase(str, Enum):
    """Fixed categories an analysis module can belong to"""
    crawl = "crawl"
    technology = "technology"
    performance = "performance"
    security = "security"
    seo = "seo"
    accessibility = "accessibility"
    css = "css"
    functionality = "functionality"


class AnalysisStatus(str, Enum):
    queued = "queued"
    running = "running"
    completed = "completed"
    failed = "failed"
    cancelled = "cancelled"


class AnalysisOptions(BaseModel):
    """Options passed through to modules; the engine does not interpret them."""
    max_depth: int = 3
    respect_robots_txt: bool = True
    include_external_links: bool = False
    performance_runs: int = 1


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AnalysisJob(BaseModel):
    id: str
    url: str
    status: AnalysisStatus = AnalysisStatus.queued
    options: AnalysisOptions = Field(default_factory=AnalysisOptions)
    created_at: datetime = Field(default_factory=_utcnow)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


# ============================================================================
# Crawl results
# ============================================================================

class PageInfo(BaseModel):
    url: str
    depth: int = 0
    status_code: int = 0
    response_time: int = 0  # milliseconds
    content_type: str = "text/html"
    size: int = 0


class SiteMap(BaseModel):
    root: str
    pages: Dict[str, PageInfo] = Field(default_factory=dict)


class APIEndpoint(BaseModel):
    url: str
    method: str = "GET"


class Resource(BaseModel):
    url: str
    type: str
    size: int = 0


class CrawlResults(BaseModel):
    pages: List[PageInfo] = Field(default_factory=list)
    site_map: SiteMap
    routing_strategy: str = "Unknown"
    api_endpoints: List[APIEndpoint] = Field(default_factory=list)
    static_resources: List[Resource] = Field(default_factory=list)
    external_links: List[str] = Field(default_factory=list)
    js_navigation: List[str] = Field(default_factory=list)


# ============================================================================
# Aggregated results
# ============================================================================

class AnalysisResults(BaseModel):
    """
    Aggregate of a run. A slot is None when its module never ran or failed;
    slots are never zero-filled.
    """
    crawl_data: Optional[Any] = None
    performance_data: Optional[Any] = None
    security_data: Optional[Any] = None
    technology_data: Optional[Any] = None
    seo_data: Optional[Any] = None
    accessibility_data: Optional[Any] = None
    css_data: Optional[Any] = None
    functionality_data: Optional[Any] = None


# Well-known module name -> AnalysisResults slot
RESULT_SLOTS: Dict[str, str] = {
    "crawler": "crawl_data",
    "performance": "performance_data",
    "security": "security_data",
    "technology": "technology_data",
    "seo": "seo_data",
    "accessibility": "accessibility_data",
    "css": "css_data",
    "functionality": "functionality_data",
}


# ============================================================================
# Progress events
# ============================================================================

class DiscoveryType(str, Enum):
    technology = "technology"
    issue = "issue"
    page = "page"
    resource = "resource"


class DiscoverySeverity(str, Enum):
    info = "info"
    warning = "warning"
    error = "error"
    critical = "critical"


class Discovery(BaseModel):
    type: DiscoveryType
    severity: DiscoverySeverity = DiscoverySeverity.info
    message: str
    timestamp: datetime = Field(default_factory=_utcnow)


class LiveMetrics(BaseModel):
    pages_crawled: int = 0
    issues_found: int = 0
    technologies_detected: int = 0
    resources_analyzed: int = 0


class ProgressUpdate(BaseModel):
    phase: AnalysisPhase
    progress: int = Field(ge=0, le=100)
    current_task: str
    discoveries: List[Discovery] = Field(default_factory=list)
    metrics: LiveMetrics = Field(default_factory=LiveMetrics)


# ============================================================================
# API Schemas
# ============================================================================

class AnalysisOptionsRequest(BaseModel):
    max_depth: Optional[int] = Field(default=None, ge=1)
    respect_robots_txt: Optional[bool] = None
    include_external_links: Optional[bool] = None
    performance_runs: Optional[int] = Field(default=None, ge=1)


class AnalysisRequest(BaseModel):
    """Request to run an analysis."""
    url: str
    options: Optional[AnalysisOptionsRequest] = None

    class Config:
        json_schema_extra = {
            "example": {
                "url": "https://example.com",
                "options": {"max_depth": 3, "respect_robots_txt": True}
            }
        }

