"""Search filter value objects."""

from pydantic import model_validator
from typing_extensions import Self

from catsync.domain.shared.model.value import ValueObject


class PriceRange(ValueObject):
    """Inclusive price bounds. Either bound may be omitted."""

    min: float | None = None
    max: float | None = None

    @model_validator(mode="after")
    def check_bounds(self) -> Self:
        if self.min is not None and self.max is not None and self.min > self.max:
            raise ValueError(f"min price {self.min} is greater than max price {self.max}")
        return self

    @property
    def is_open(self) -> bool:
        """True when neither bound is set."""
        return self.min is None and self.max is None


class SearchFilters(ValueObject):
    """Filters for a product search. All set filters must match (logical AND).

    ``text`` is matched fuzzily against title, description and category.
    The per-field filters match only their own field.
    """

    text: str | None = None
    title: str | None = None
    description: str | None = None
    category: str | None = None
    price: PriceRange | None = None

    @property
    def is_empty(self) -> bool:
        text_filters = (self.text, self.title, self.description, self.category)
        return all(not f for f in text_filters) and (self.price is None or self.price.is_open)
