"""
PropScrape: property-listing scrape → AI extraction → image localization → AI copy enhancement.

    from propscrape import ScrapePipeline, scrape_from_url, scrape_bulk
"""

from __future__ import annotations

from propscrape.orchestrator import ScrapePipeline, build_pipeline, scrape_bulk, scrape_from_html, scrape_from_url

__version__ = "0.3.0"

__all__ = ["ScrapePipeline", "build_pipeline", "scrape_bulk", "scrape_from_html", "scrape_from_url", "__version__"]
