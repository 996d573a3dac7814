"""Translate SearchFilters into an Elasticsearch query body."""

from typing import Any

from catsync.domain.search.model.value import SearchFilters

TEXT_FIELDS = ("title", "description", "category")


def build_query(filters: SearchFilters) -> dict[str, Any]:
    """Build the query clause for a product search.

    Text filters use fuzzy matching (fuzziness AUTO); the price filter is an
    inclusive range. All clauses must match. No filters matches everything.
    """
    clauses: list[dict[str, Any]] = []

    if filters.text:
        clauses.append(
            {
                "multi_match": {
                    "query": filters.text,
                    "fields": list(TEXT_FIELDS),
                    "fuzziness": "AUTO",
                }
            }
        )

    for field in TEXT_FIELDS:
        value = getattr(filters, field)
        if value:
            clauses.append({"match": {field: {"query": value, "fuzziness": "AUTO"}}})

    if filters.price is not None and not filters.price.is_open:
        bounds: dict[str, float] = {}
        if filters.price.min is not None:
            bounds["gte"] = filters.price.min
        if filters.price.max is not None:
            bounds["lte"] = filters.price.max
        clauses.append({"range": {"price": bounds}})

    if not clauses:
        return {"match_all": {}}
    return {"bool": {"must": clauses}}
