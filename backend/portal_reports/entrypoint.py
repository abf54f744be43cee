import asyncio
import signal

import uvicorn

from portal_reports.core.config import settings
from portal_reports.main import app


async def serve() -> None:
    config = uvicorn.Config(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())
    server = uvicorn.Server(config)

    loop = asyncio.get_running_loop()
    stop_event = asyncio.Event()

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, stop_event.set)

    server_task = asyncio.create_task(server.serve())
    await stop_event.wait()
    server.should_exit = True
    await server_task


def main() -> None:
    asyncio.run(serve())


if __name__ == "__main__":
    main()
