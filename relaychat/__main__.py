import argparse
import asyncio

import uvicorn

from .app import ChatContext, create_app
from .config import Settings, configure_logging


async def check_store(settings: Settings) -> int:
    """Ping MongoDB once with the configured URI; 0 when reachable."""
    chat = ChatContext(settings)
    chat.open(serverSelectionTimeoutMS=5000)
    try:
        return 0 if await chat.ping() else 1
    finally:
        await chat.stop()


def main(argv=None):
    parser = argparse.ArgumentParser(prog='relaychat', description='Run the RelayChat server.')
    parser.add_argument(
        '--check',
        action='store_true',
        help='only verify that MongoDB is reachable, then exit',
    )
    args = parser.parse_args(argv)

    settings = Settings.from_env()
    configure_logging(settings.log_level)
    if args.check:
        return asyncio.run(check_store(settings))
    app = create_app(settings)
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())
    return 0


if __name__ == '__main__':
    raise SystemExit(main())
