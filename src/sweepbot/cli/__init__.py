def main() -> None:
    """CLI entrypoint for the sweepbot console script."""
    from sweepbot.cli.app import app

    app()
