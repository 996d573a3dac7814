"""Search command - query a running server."""

import os
import sys
import time
from collections.abc import Callable
from typing import TypeVar

import cyclopts
import httpx

from catsync.cli.console import get_console

app = cyclopts.App(name="search", help="Search products on a running server")

T = TypeVar("T")


def get_server_url() -> str:
    """Get server URL from the environment."""
    return os.environ.get("CATSYNC_SERVER_URL", "http://localhost:8000").rstrip("/")


def with_retry(
    fn: Callable[[], T],
    retries: int = 3,
    exceptions: tuple[type[Exception], ...] = (Exception,),
) -> T:
    """Retry a function on transient errors with linear backoff.

    Raises:
        The last exception if all retries fail.
    """
    last_error: Exception | None = None
    for attempt in range(retries + 1):
        try:
            return fn()
        except exceptions as e:
            last_error = e
            if attempt < retries:
                time.sleep(0.2 * (attempt + 1))
    raise last_error  # type: ignore[misc]


def build_params(
    query: str | None,
    title: str | None,
    description: str | None,
    category: str | None,
    min_price: float | None,
    max_price: float | None,
) -> dict[str, str | float]:
    """Query string for the search endpoint, omitting unset filters."""
    params = {
        "q": query,
        "title": title,
        "description": description,
        "category": category,
        "min_price": min_price,
        "max_price": max_price,
    }
    return {k: v for k, v in params.items() if v is not None}


@app.default
def search(
    query: str | None = None,
    /,
    *,
    title: str | None = None,
    description: str | None = None,
    category: str | None = None,
    min_price: float | None = None,
    max_price: float | None = None,
) -> None:
    """Search products. All given filters must match.

    Args:
        query: Fuzzy text across title, description and category.
        title: Fuzzy match on title.
        description: Fuzzy match on description.
        category: Fuzzy match on category name.
        min_price: Inclusive lower price bound.
        max_price: Inclusive upper price bound.
    """
    console = get_console()
    server_url = get_server_url()
    url = f"{server_url}/api/v1/search"
    params = build_params(query, title, description, category, min_price, max_price)

    try:
        response = with_retry(
            lambda: httpx.get(url, params=params),
            exceptions=(httpx.ReadError,),
        )
        response.raise_for_status()
        data = response.json()
    except httpx.ConnectError:
        console.error(
            f"Could not connect to server at {server_url}",
            hint="Is the server running? Start it with: catsync serve",
        )
        sys.exit(1)
    except httpx.HTTPStatusError as e:
        console.error(f"Server error: {e.response.status_code} - {e.response.text}")
        sys.exit(1)

    results = data.get("results", [])
    if not results:
        console.print("[dim]No matching products[/dim]")
        return

    rows = [
        {
            "id": item["id"],
            "title": item["title"],
            "category": item.get("category") or "-",
            "price": f"{item['price']:.2f}",
            "quantity": item["quantity"],
        }
        for item in results
    ]
    console.table(
        rows,
        [
            ("id", "ID"),
            ("title", "Title"),
            ("category", "Category"),
            ("price", "Price"),
            ("quantity", "Qty"),
        ],
        title=f"{data.get('total', len(results))} products",
        justify_right=("price", "quantity"),
    )
