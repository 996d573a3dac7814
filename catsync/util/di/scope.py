"""Custom Dishka scopes for catsync."""

from dishka import BaseScope, new_scope


class Scope(BaseScope):  # type: ignore[misc]  # BaseScope is designed to be subclassed
    """catsync dependency injection scopes.

    Hierarchy: APP -> UOW

    - APP: Application lifetime (store handles, sync engine)
    - UOW: Unit of Work (one HTTP request)
    """

    APP = new_scope("APP")
    UOW = new_scope("UOW")
