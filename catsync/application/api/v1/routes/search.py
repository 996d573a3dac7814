"""Search API routes."""

import pydantic
from dishka.integrations.fastapi import DishkaRoute, FromDishka
from fastapi import APIRouter, Query
from pydantic import BaseModel

from catsync.domain.cache.model.record import CacheRecord
from catsync.domain.search.model.value import PriceRange, SearchFilters
from catsync.domain.search.service.search import SearchService
from catsync.domain.shared.error import ValidationError

router = APIRouter(
    prefix="/search",
    tags=["search"],
    route_class=DishkaRoute,
)


class SearchResponse(BaseModel):
    """Search response model."""

    total: int
    results: list[CacheRecord]


def _price_range(min_price: float | None, max_price: float | None) -> PriceRange | None:
    if min_price is None and max_price is None:
        return None
    try:
        return PriceRange(min=min_price, max=max_price)
    except pydantic.ValidationError as e:
        raise ValidationError(
            f"min_price ({min_price}) must not exceed max_price ({max_price})",
            field="min_price",
        ) from e


@router.get("")
async def search_products(
    service: FromDishka[SearchService],
    q: str | None = Query(None, description="Fuzzy text across title, description and category"),
    title: str | None = Query(None, description="Fuzzy match on title"),
    description: str | None = Query(None, description="Fuzzy match on description"),
    category: str | None = Query(None, description="Fuzzy match on category name"),
    min_price: float | None = Query(None, ge=0, description="Inclusive lower price bound"),
    max_price: float | None = Query(None, ge=0, description="Inclusive upper price bound"),
) -> SearchResponse:
    """Search products. All given filters must match."""
    filters = SearchFilters(
        text=q,
        title=title,
        description=description,
        category=category,
        price=_price_range(min_price, max_price),
    )
    results = await service.search(filters)
    return SearchResponse(total=len(results), results=results)
