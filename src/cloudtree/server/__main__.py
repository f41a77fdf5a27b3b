"""Run the item store server: ``python -m cloudtree.server [settings.yaml]``."""

from __future__ import annotations

import sys

import uvicorn

from cloudtree.config import load_settings
from cloudtree.errors import InvalidArgumentError

from .app import configure_logging, create_app


def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    settings = load_settings(args[0] if args else None)
    if settings.server is None:
        raise InvalidArgumentError("Settings file has no 'server' section")

    server = settings.server
    configure_logging(server.log_level)
    uvicorn.run(
        create_app(server),
        host=server.host,
        port=server.port,
        log_level=server.log_level.lower(),
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
