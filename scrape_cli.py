# scrape_cli.py

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from propscrape.config import policy_from_env
from propscrape.core.errors import FetchError, ValidationError
from propscrape.core.export import to_json, write_csv
from propscrape.logging_utils import configure_logging
from propscrape.orchestrator import build_pipeline
from propscrape.schemas.models import BulkJobResult, FinalizedRecord, ScrapePolicy


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Scrape property listings into enriched records")
    mode = p.add_mutually_exclusive_group(required=True)
    mode.add_argument("--url", type=str, default=None, help="Listing page to fetch")
    mode.add_argument("--html-file", type=str, default=None, help="Saved HTML to process instead of fetching")
    mode.add_argument("--bulk-file", type=str, default=None, help="Text file with one URL per line")
    p.add_argument("--origin-url", type=str, default=None, help="Origin URL recorded for --html-file")
    p.add_argument("--save", action="store_true", help="Persist records to the JSON record store")
    p.add_argument("--export-json", type=str, default=None, help="Write flattened records to this JSON file")
    p.add_argument("--export-csv", type=str, default=None, help="Write flattened records to this CSV file")
    p.add_argument("--ai", choices=("openai", "heuristic"), default=None, help="AI backend (default: policy/env)")
    p.add_argument("--log-level", type=str, default="INFO")
    return p


async def _run(args: argparse.Namespace, policy: ScrapePolicy) -> tuple[list[FinalizedRecord], BulkJobResult | None]:
    async with build_pipeline(policy, persist=args.save) as pipeline:
        if args.url:
            return await pipeline.scrape_from_url(args.url), None
        if args.html_file:
            html = Path(args.html_file).read_text(encoding="utf-8")
            return await pipeline.scrape_from_html(html, args.origin_url), None
        text = Path(args.bulk_file).read_text(encoding="utf-8")
        bulk = await pipeline.scrape_bulk(text)
        return bulk.records, bulk


def _print_summary(records: list[FinalizedRecord], bulk: BulkJobResult | None, policy: ScrapePolicy) -> None:
    prefix = policy.public_url_prefix.rstrip("/") + "/"
    local = sum(1 for r in records for u in r.image_urls if u.startswith(prefix))
    total = sum(len(r.image_urls) for r in records)
    print(f"records: {len(records)}")
    print(f"images: {total} (localized: {local}, fallback: {total - local})")
    for r in records:
        print(f"  {r.id}  {r.title or 'N/A'}")
    if bulk is not None:
        print(f"bulk errors: {len(bulk.errors)}")
        for err in bulk.errors:
            print(f"  {err.url}: {err.error_message}")


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    configure_logging(args.log_level.upper())

    policy = policy_from_env()
    if args.ai:
        policy = policy.model_copy(update={"ai_provider": args.ai})

    try:
        records, bulk = asyncio.run(_run(args, policy))
    except (ValidationError, FetchError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    except OSError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    if args.export_json:
        out = Path(args.export_json)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(to_json(records), encoding="utf-8")
        print(f"wrote {out}")
    if args.export_csv:
        write_csv(records, args.export_csv)
        print(f"wrote {args.export_csv}")

    _print_summary(records, bulk, policy)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
