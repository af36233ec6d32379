"""
FastAPI application entry point.
"""

import argparse
import sys
from typing import Optional, Sequence

from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ghmailer import __version__
from ghmailer.api import webhooks
from ghmailer.config import ConfigError, Configuration, Settings, load_configuration
from ghmailer.middleware.logging import RequestLoggingMiddleware
from ghmailer.services.notifier import EmailNotifier
from ghmailer.services.push_dispatcher import Notifier, PushDispatcher
from ghmailer.utils.logging import get_logger, setup_logging

logger = get_logger(__name__)


async def not_found_handler(request: Request, exc: StarletteHTTPException):
    """Answer unknown paths and unsupported methods with a plain 404."""
    if exc.status_code in (404, 405):
        return PlainTextResponse("Not Found\n", status_code=404)
    return await http_exception_handler(request, exc)


def create_app(
    configuration: Configuration,
    settings: Optional[Settings] = None,
    notifier: Optional[Notifier] = None
) -> FastAPI:
    """
    Create the FastAPI application for a loaded configuration.

    Args:
        configuration: Subscribers and transport settings
        settings: Process settings (read from the environment if omitted)
        notifier: Delivery backend (SMTP from ``configuration`` if omitted)

    Returns:
        Configured application
    """
    app = FastAPI(
        title="ghmailer",
        description="Email notifications for source-code push webhooks",
        version=__version__,
        redirect_slashes=False
    )

    app.state.settings = settings if settings is not None else Settings()
    app.state.configuration = configuration
    app.state.dispatcher = PushDispatcher(
        configuration,
        notifier or EmailNotifier(configuration)
    )

    app.add_middleware(RequestLoggingMiddleware)
    app.add_exception_handler(StarletteHTTPException, not_found_handler)

    @app.get("/", response_class=PlainTextResponse)
    async def root():
        """Liveness probe."""
        return "OK\n"

    app.include_router(webhooks.router)

    return app


def parse_args(argv: Optional[Sequence[str]] = None, default_conf: str = "conf.yaml") -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="ghmailer",
        description="Send email notifications for pushed commits"
    )
    parser.add_argument(
        "--conf",
        default=default_conf,
        help="Path to YAML config (default: %(default)s)"
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Load configuration and serve until interrupted."""
    settings = Settings()
    args = parse_args(argv, default_conf=settings.conf_path)

    # Configure structured logging
    setup_logging(settings.log_level)

    try:
        configuration = load_configuration(args.conf)
    except ConfigError as e:
        logger.error(f"Cannot start: {e}")
        return 1

    app = create_app(configuration, settings=settings)
    host, port = configuration.listen_address

    logger.info(
        f"Listening on {host}:{port}",
        extra={"subscriber_count": len(configuration.users)}
    )

    import uvicorn
    uvicorn.run(app, host=host, port=port, log_config=None)
    return 0


if __name__ == "__main__":
    sys.exit(main())
