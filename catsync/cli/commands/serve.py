"""Serve command - run the sync engine and search API."""

import cyclopts
import logfire
import uvicorn

app = cyclopts.App(name="serve", help="Run the sync engine and the search API")


@app.default
def serve(host: str = "127.0.0.1", port: int = 8000, reload: bool = False) -> None:
    """Start the HTTP server. The sync engine runs inside it.

    Args:
        host: Interface to bind.
        port: Port to bind.
        reload: Restart on code changes (development only).
    """
    # Logfire must be configured before the app factory instruments FastAPI
    logfire.configure(service_name="catalog-sync", send_to_logfire="if-token-present")

    uvicorn.run(
        "catsync.application.api.rest.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
    )
