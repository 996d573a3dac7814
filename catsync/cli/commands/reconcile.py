"""Reconcile command - run one bootstrap reconciliation pass and exit."""

import asyncio
import sys

import cyclopts
import logfire

from catsync.application.di import create_container
from catsync.cli.console import get_console
from catsync.config import Config, configure_logging
from catsync.domain.search.port.index import SearchIndex
from catsync.domain.shared.error import CatSyncError
from catsync.domain.sync.model.value import ReconcileReport
from catsync.domain.sync.service.reconciler import BootstrapReconciler

app = cyclopts.App(name="reconcile", help="Reconcile the cache and index against upstream")


async def run_reconcile(config: Config, backfill: bool = True) -> tuple[ReconcileReport, int]:
    """Reconcile every upstream entity, then optionally backfill the index.

    Returns the reconcile report and the number of backfilled documents.
    """
    container = create_container(config)
    try:
        index = await container.get(SearchIndex)
        await index.ensure_index()

        reconciler = await container.get(BootstrapReconciler)
        report = await reconciler.reconcile()
        backfilled = await reconciler.backfill_index() if backfill else 0
        return report, backfilled
    finally:
        await container.close()


@app.default
def reconcile(backfill: bool = True) -> None:
    """Bring the cache and search index up to date with upstream, then exit.

    Args:
        backfill: Also index cached records missing from the search index.
    """
    console = get_console()
    config = Config()  # type: ignore[call-arg]
    configure_logging(config.logging)
    logfire.configure(service_name="catalog-sync", send_to_logfire="if-token-present")

    try:
        with console.status("Reconciling against upstream..."):
            report, backfilled = asyncio.run(run_reconcile(config, backfill=backfill))
    except CatSyncError as e:
        console.error(e.message, hint="Check the upstream, database and search settings")
        sys.exit(1)

    rows = [
        {"outcome": "scanned", "count": report.scanned},
        {"outcome": "inserted", "count": report.inserted},
        {"outcome": "updated", "count": report.updated},
        {"outcome": "unchanged", "count": report.unchanged},
        {"outcome": "failed", "count": report.failed},
    ]
    if backfill:
        rows.append({"outcome": "backfilled", "count": backfilled})
    console.table(
        rows,
        [("outcome", "Outcome"), ("count", "Count")],
        title="Reconciliation",
        justify_right=("count",),
    )

    if report.failed:
        console.warning(f"{report.failed} entities failed to reconcile, see the log for details")
        sys.exit(2)
    console.success("Cache and search index are up to date")
