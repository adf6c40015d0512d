"""
Requirement Audit Planner — Main Entry Point

Recalculate risk across every catalog (CLI):
    python -m requirement_audit.main <sprint_number>

Run as an API server (for the frontend):
    python -m requirement_audit.main --serve
    # or: uvicorn requirement_audit.api:app --reload --port 8000

Or import and run programmatically:
    from requirement_audit.main import run
    result = run(5)
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime, timezone

from requirement_audit.config import get_settings
from requirement_audit.models.schemas import AllCatalogsRiskResult
from requirement_audit.persistence import create_store
from requirement_audit.services import CatalogService
from requirement_audit.utils.logger import setup_logging


def run(sprint_actual: int) -> AllCatalogsRiskResult:
    """Recalculate risk for every stored catalog and log a ranking summary."""
    settings = get_settings()
    setup_logging(settings.log_level)
    logger = logging.getLogger(__name__)

    logger.info("=" * 60)
    logger.info("  REQUIREMENT AUDIT PLANNER — RISK RECALCULATION")
    logger.info(f"  Sprint: {sprint_actual} | Storage: {settings.storage_backend} | "
                f"Started: {datetime.now(timezone.utc).isoformat()}")
    logger.info("=" * 60)

    service = CatalogService(create_store(settings), settings)
    result = service.calculate_risks_all_catalogs(sprint_actual)

    _print_summary(service, result)
    return result


def _print_summary(service: CatalogService, result: AllCatalogsRiskResult) -> None:
    """Log the recalculated catalogs and the current top risks."""
    logger = logging.getLogger(__name__)

    logger.info("-" * 60)
    logger.info(f"  Catalogs updated: {len(result.updated_catalogs)}")
    for ref in result.updated_catalogs:
        logger.info(f"    {ref.id} | {ref.title}")

    top = service.get_all_requirements_by_risk().selected_requirements
    logger.info(f"  Top {len(top)} requirements by risk:")
    for req in top:
        logger.info(f"    {req.risk:6.2f} | {req.section:<10} | {req.heading} ({req.catalog_title})")
    logger.info("-" * 60)


def serve(host: str = "0.0.0.0", port: int = 8000) -> None:
    """Start the FastAPI server."""
    import uvicorn

    setup_logging(get_settings().log_level)
    logger = logging.getLogger(__name__)
    logger.info(f"Starting API server on {host}:{port}")
    uvicorn.run("requirement_audit.api:app", host=host, port=port, reload=True)


def main(argv: list[str] | None = None) -> None:
    args = sys.argv[1:] if argv is None else argv
    if "--serve" in args:
        serve()
    elif args:
        run(int(args[0]))
    else:
        print("usage: python -m requirement_audit [--serve | <sprint_number>]")


if __name__ == "__main__":
    main()
