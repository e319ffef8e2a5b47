"""Web UI for browsing and filtering company asset trees."""

from __future__ import annotations

import argparse
import os
from pathlib import Path
from typing import Any

import httpx
from dotenv import load_dotenv
from flask import (
    Flask,
    jsonify,
    redirect,
    render_template,
    request,
    url_for,
)
from werkzeug.wrappers import Response

from tractian_api import DEFAULT_BASE_URL, DEFAULT_PAGE_SIZE, TractianApiManager
from tree_filters import FilterCriteria
from tree_session import AssetTreeSession
from tree_views import tree_to_dicts


__all__ = ["run_web_app", "create_app", "create_app_from_env"]

_TRUTHY = {"1", "true", "yes", "on"}


def _flag(value: str | None) -> bool:
    return (value or "").lower() in _TRUTHY


def create_app(
    api_manager: TractianApiManager,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> Flask:
    """Create the Flask app wired to the provided API manager."""
    template_dir = Path(__file__).resolve().parent / "templates"
    app = Flask(__name__, template_folder=str(template_dir))
    app.config["SECRET_KEY"] = os.getenv(
        "FLASK_SECRET_KEY", "asset-tree-ui")

    session = AssetTreeSession(api_manager, page_size=page_size)
    app.extensions["asset_tree_session"] = session

    def _criteria_from_args() -> FilterCriteria:
        return FilterCriteria(
            text=(request.args.get("q") or "").strip(),
            energy_sensor=_flag(request.args.get("energy")),
            critical=_flag(request.args.get("critical")),
        )

    def _filter_params(criteria: FilterCriteria) -> dict[str, str]:
        params: dict[str, str] = {}
        if criteria.text:
            params["q"] = criteria.text
        if criteria.energy_sensor:
            params["energy"] = "1"
        if criteria.critical:
            params["critical"] = "1"
        return params

    def _ensure_selected(company_id: str) -> None:
        if session.company_id != company_id:
            session.select_company(company_id)
            session.load_more()

    @app.route("/", methods=["GET"])
    def index() -> Response | str:  # pyright: ignore[reportUnusedFunction]
        return redirect(url_for("companies_index"))

    @app.route("/companies", methods=["GET"])
    # pyright: ignore[reportUnusedFunction]
    def companies_index() -> Response | str:
        try:
            companies = session.list_companies()
        except (httpx.HTTPError, RuntimeError) as exc:
            return Response(f"Failed to load companies: {exc}", status=500)

        session.clear_selection()
        return render_template("companies.html", companies=companies)

    @app.route("/companies/<company_id>", methods=["GET"])
    # pyright: ignore[reportUnusedFunction]
    def company_tree(company_id: str) -> Response | str:
        try:
            _ensure_selected(company_id)
        except (httpx.HTTPError, RuntimeError) as exc:
            return Response(f"Failed to load company {company_id}: {exc}", status=500)

        criteria = _criteria_from_args()
        visible = session.set_filters(criteria)

        error_message = None
        if request.args.get("error") == "fetch":
            error_message = (
                request.args.get("message")
                or "Unable to load more assets."
            )

        return render_template(
            "tree.html",
            company_id=company_id,
            nodes=visible.nodes,
            criteria=criteria,
            filter_params=_filter_params(criteria),
            exhausted=session.exhausted,
            pages_loaded=session.pages_loaded,
            error=error_message,
        )

    @app.route("/companies/<company_id>/more", methods=["POST"])
    # pyright: ignore[reportUnusedFunction]
    def company_load_more(company_id: str) -> Response | str:
        params = {
            key: value
            for key, value in request.form.items()
            if key in {"q", "energy", "critical"} and value
        }
        try:
            if session.company_id != company_id:
                _ensure_selected(company_id)
            else:
                session.load_more()
        except (httpx.HTTPError, RuntimeError) as exc:
            return redirect(
                url_for(
                    "company_tree",
                    company_id=company_id,
                    error="fetch",
                    message=str(exc),
                    **params,
                )
            )
        return redirect(url_for("company_tree", company_id=company_id, **params))

    @app.route("/companies/<company_id>/tree.json", methods=["GET"])
    # pyright: ignore[reportUnusedFunction]
    def company_tree_json(company_id: str) -> Response | tuple[Response, int]:
        try:
            _ensure_selected(company_id)
        except (httpx.HTTPError, RuntimeError) as exc:
            return jsonify({"error": str(exc)}), 502

        visible = session.set_filters(_criteria_from_args())
        payload: dict[str, Any] = {
            "companyId": company_id,
            "pagesLoaded": session.pages_loaded,
            "exhausted": session.exhausted,
            "nodes": tree_to_dicts(visible),
        }
        return jsonify(payload)

    return app


def _page_size_from_env() -> int:
    raw = os.getenv("ASSET_TREE_PAGE_SIZE")
    if not raw:
        return DEFAULT_PAGE_SIZE
    try:
        return int(raw)
    except ValueError as exc:
        raise RuntimeError(f"Invalid ASSET_TREE_PAGE_SIZE '{raw}': {exc}") from exc


def create_app_from_env() -> Flask:
    """Create the Flask app using TRACTIAN_* environment variables."""
    load_dotenv()
    api_manager = TractianApiManager(
        base_url=os.getenv("TRACTIAN_API_URL", DEFAULT_BASE_URL),
    )
    return create_app(api_manager, page_size=_page_size_from_env())


def run_web_app(
    api_manager: TractianApiManager,
    host: str,
    port: int,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> None:
    """Launch a lightweight Flask app for browsing asset trees."""
    app = create_app(api_manager, page_size=page_size)

    use_reloader_env = os.getenv("USE_RELOADER")
    use_reloader = (
        str(use_reloader_env).lower() in _TRUTHY
        if use_reloader_env is not None
        else True
    )
    app.run(host=host, port=port, debug=False, use_reloader=use_reloader)


def main(argv: list[str] | None = None) -> int:
    """CLI entry point for the web UI."""
    parser = argparse.ArgumentParser(
        description="Asset tree viewer web UI"
    )
    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Host/IP for the web UI (default: 127.0.0.1).",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=4000,
        help="Port for the web UI (default: 4000).",
    )

    args = parser.parse_args(argv)

    api_manager = TractianApiManager(
        base_url=os.getenv("TRACTIAN_API_URL", DEFAULT_BASE_URL),
    )

    run_web_app(
        api_manager=api_manager,
        host=args.host,
        port=args.port,
        page_size=_page_size_from_env(),
    )
    return 0


if __name__ == "__main__":
    load_dotenv()
    main()
