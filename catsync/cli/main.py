"""catsync command line entry point."""

import cyclopts

from catsync.cli.commands import reconcile, search, serve

app = cyclopts.App(
    name="catsync",
    help="Keep the product cache and search index in step with the upstream catalog.",
)
app.command(serve.app)
app.command(reconcile.app)
app.command(search.app)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
