"""
Career Buddy
Copyright (c) 2026 Career Buddy contributors.
All Rights Reserved.
"""

from __future__ import annotations

import argparse
import json
import logging
from typing import List, Optional

import uvicorn

from cb_engine.ai.service import AnalysisService
from cb_engine.batch import score_listings
from cb_engine.careers import careers_by_interest, unique_interests
from cb_engine.config import load_settings
from cb_engine.errors import CareerBuddyError, ListingRetrievalError
from cb_engine.listing_rules import derive_listing_fields
from cb_engine.models import AnalysisRequest, Mode
from cb_engine.providers.remotive import DEFAULT_KEYWORD, RemotiveClient


def _setup_logging() -> None:
    if logging.getLogger().hasHandlers():
        return
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _print_json(obj) -> None:
    print(json.dumps(obj, ensure_ascii=False, indent=2))


def _serve(args: argparse.Namespace) -> int:
    _setup_logging()
    uvicorn.run("careerbuddy.api.app:create_app", factory=True, host=args.host, port=args.port)
    return 0


def _jobs(args: argparse.Namespace) -> int:
    _setup_logging()
    client = RemotiveClient.from_settings(load_settings())
    try:
        listings = client.search(args.keyword, limit=args.limit)
    except ListingRetrievalError as exc:
        print(f"[jobs] FAIL {exc}")
        return 1
    if args.json:
        _print_json([dict(listing.to_dict(), **derive_listing_fields(listing)) for listing in listings])
        return 0
    for listing in listings:
        derived = derive_listing_fields(listing)
        remote = "remote" if derived["remote"] else "onsite"
        skills = ", ".join(derived["skills"]) or "-"
        print(f"- {listing.title} @ {listing.company_name} [{derived['experience_level']}, {remote}] {skills}")
    print(f"[jobs] {len(listings)} listing(s) for '{args.keyword or DEFAULT_KEYWORD}'")
    return 0


def _analyze(args: argparse.Namespace) -> int:
    _setup_logging()
    service = AnalysisService.from_env()
    mode = Mode.coerce(args.mode)
    rc = 0
    try:
        result = service.analyze(AnalysisRequest(args.title, args.text or "", mode))
    except CareerBuddyError as exc:
        logging.warning("Analysis failed: %s", exc)
        result = service.display_value_for_error(mode, exc)
        rc = 1
    _print_json(result.to_dict())
    return rc


def _score(args: argparse.Namespace) -> int:
    _setup_logging()
    settings = load_settings()
    client = RemotiveClient.from_settings(settings)
    try:
        listings = client.search(args.keyword, limit=args.limit)
    except ListingRetrievalError as exc:
        print(f"[score] FAIL {exc}")
        return 1
    service = AnalysisService.from_settings(settings)
    scored = score_listings(service, listings, batch_size=args.batch_size, delay_s=args.delay)
    if args.json:
        _print_json([item.to_dict() for item in scored])
        return 0
    for item in scored:
        print(f"- {item.score:>3} {item.listing.title} @ {item.listing.company_name}")
    return 0


def _careers(args: argparse.Namespace) -> int:
    if not args.interest:
        for interest in unique_interests():
            print(interest)
        return 0
    for career in careers_by_interest(args.interest, limit=args.limit):
        info = career.to_dict()
        print(f"- {career.title}: {info['safety_percent']}% safe ({info['risk_band']}); {', '.join(career.skills)}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="careerbuddy",
        description="Career Buddy CLI (job listings and AI automation risk scoring).",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=3000)
    serve.set_defaults(func=_serve)

    jobs = subparsers.add_parser("jobs", help="Search job listings")
    jobs.add_argument("--keyword", default=DEFAULT_KEYWORD)
    jobs.add_argument("--limit", type=int, default=None)
    jobs.add_argument("--json", action="store_true", help="Print listings as JSON.")
    jobs.set_defaults(func=_jobs)

    analyze = subparsers.add_parser("analyze", help="Run one analysis")
    analyze.add_argument("--title", required=True, help="Job title, company, course topic or chat subject.")
    analyze.add_argument("--text", default="", help="Description or chat message.")
    analyze.add_argument("--mode", default=Mode.DEFAULT.value, choices=[m.value for m in Mode])
    analyze.set_defaults(func=_analyze)

    score = subparsers.add_parser("score", help="Fetch listings and score their AI automation risk")
    score.add_argument("--keyword", default=DEFAULT_KEYWORD)
    score.add_argument("--limit", type=int, default=10)
    score.add_argument("--batch-size", type=int, default=3)
    score.add_argument("--delay", type=float, default=1.0, help="Seconds to pause between batches.")
    score.add_argument("--json", action="store_true")
    score.set_defaults(func=_score)

    careers = subparsers.add_parser("careers", help="Browse the career catalog")
    careers.add_argument("--interest", help="Interest to list careers for; omit to list interests.")
    careers.add_argument("--limit", type=int, default=5)
    careers.set_defaults(func=_careers)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main())
