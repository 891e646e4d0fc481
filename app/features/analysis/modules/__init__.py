from typing import List

from app.features.analysis.modules.crawler import CrawlerModule
from app.features.analysis.services.module import AnalysisModule


def default_modules() -> List[AnalysisModule]:
    """Fresh instances of the modules every analysis runs."""
    return [CrawlerModule()]
