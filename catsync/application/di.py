from dishka import AsyncContainer, Provider, from_context, make_async_container
from starlette.requests import Request

from catsync.config import Config
from catsync.infrastructure.index.di import IndexProvider
from catsync.infrastructure.persistence.di import PersistenceProvider
from catsync.infrastructure.sync.di import SyncProvider
from catsync.infrastructure.upstream.di import UpstreamProvider
from catsync.util.di.scope import Scope


class ContextProvider(Provider):
    """Values handed to the container rather than built by it."""

    config = from_context(provides=Config, scope=Scope.APP)
    request = from_context(provides=Request, scope=Scope.UOW)


def create_container(config: Config | None = None) -> AsyncContainer:
    # Pydantic Settings populates from env vars at runtime
    if config is None:
        config = Config()  # type: ignore[call-arg]

    return make_async_container(
        ContextProvider(),
        PersistenceProvider(),
        IndexProvider(),
        UpstreamProvider(),
        SyncProvider(),
        context={Config: config},
        scopes=Scope,  # type: ignore[arg-type]  # Custom scope class
    )
