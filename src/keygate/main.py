"""Application entry point for the keygate server."""

from keygate.app import App
from keygate.config import Config
from keygate.logging import setup_logging
from keygate.web.runner import run_server


def main() -> None:
    config = Config()
    setup_logging(config.debug)
    app = App(config)
    run_server(app, config)


if __name__ == "__main__":
    main()
