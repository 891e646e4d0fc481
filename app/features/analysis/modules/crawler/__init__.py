from app.features.analysis.modules.crawler.crawler import CrawlerModule, detect_routing_strategy

__all__ = ["CrawlerModule", "detect_routing_strategy"]
