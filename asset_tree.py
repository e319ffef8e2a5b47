#!/usr/bin/env python3
"""Print a company's asset tree from the Tractian demo API."""

import argparse
import json
import logging
import os
from typing import List, Optional, Sequence

from dotenv import load_dotenv

from domain_types import Company
from tractian_api import DEFAULT_BASE_URL, DEFAULT_PAGE_SIZE, TractianApiManager
from tree_filters import FilterCriteria
from tree_session import AssetTreeSession
from tree_views import render_text, tree_to_dicts


def _parse_page_size(value: Optional[str]) -> int:
    """Read a positive page size from the CLI or the environment."""

    if not value:
        return DEFAULT_PAGE_SIZE
    try:
        size = int(value)
    except ValueError as exc:
        raise SystemExit(f"Invalid page size '{value}': {exc}") from exc
    if size < 1:
        raise SystemExit(f"Invalid page size '{value}': must be positive")
    return size


def format_companies(companies: Sequence[Company]) -> List[str]:
    return [f"{company.id}\t{company.name}" for company in companies]


def show_tree(
    session: AssetTreeSession,
    company_id: str,
    criteria: FilterCriteria,
    as_json: bool,
) -> str:
    """Load every page for ``company_id`` and render the filtered tree."""

    known = {company.id for company in session.list_companies()}
    if company_id not in known:
        raise SystemExit(f"Unknown company '{company_id}'.")

    session.select_company(company_id)
    session.load_all()
    visible = session.set_filters(criteria)

    if as_json:
        return json.dumps(tree_to_dicts(visible), indent=2)
    lines = render_text(visible)
    if not lines:
        return "No nodes matched the provided filters."
    return "\n".join(lines)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """CLI entry point for browsing the asset tree."""

    parser = argparse.ArgumentParser(
        description="Tractian companies -> location/asset tree"
    )
    parser.add_argument(
        "--base",
        default=os.getenv("TRACTIAN_API_URL", DEFAULT_BASE_URL),
        help=(
            "API base URL (defaults to TRACTIAN_API_URL from the "
            "environment/.env)."
        ),
    )
    parser.add_argument(
        "-c", "--company",
        help="Company id to show; lists companies when omitted.",
    )
    parser.add_argument(
        "-s", "--search",
        default="",
        help="Case-insensitive text that node names must contain.",
    )
    parser.add_argument(
        "-e", "--energy",
        action="store_true",
        help="Only keep energy sensors and their ancestors.",
    )
    parser.add_argument(
        "--critical",
        action="store_true",
        help="Only keep critical nodes and their ancestors.",
    )
    parser.add_argument(
        "-p", "--page-size",
        default=os.getenv("ASSET_TREE_PAGE_SIZE"),
        help=(
            f"Assets merged per page (default: {DEFAULT_PAGE_SIZE}, or "
            "ASSET_TREE_PAGE_SIZE)."
        ),
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the visible tree as JSON.",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log debug output to stderr.",
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    api_manager = TractianApiManager(base_url=args.base)
    session = AssetTreeSession(api_manager, page_size=_parse_page_size(args.page_size))

    try:
        if args.company:
            criteria = FilterCriteria(
                text=args.search,
                energy_sensor=args.energy,
                critical=args.critical,
            )
            message = show_tree(session, args.company, criteria, args.json)
        else:
            message = "\n".join(format_companies(session.list_companies()))
    finally:
        api_manager.close()

    print(message)
    return 0


if __name__ == "__main__":

    load_dotenv()

    main()
