from .pipeline import (
    ScrapePipeline,
    build_pipeline,
    parse_url_list,
    scrape_bulk,
    scrape_from_html,
    scrape_from_url,
    validate_html,
    validate_url,
)

__all__ = [
    "ScrapePipeline",
    "build_pipeline",
    "parse_url_list",
    "scrape_bulk",
    "scrape_from_html",
    "scrape_from_url",
    "validate_html",
    "validate_url",
]
