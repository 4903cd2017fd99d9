import sys
import asyncio

# Playwright needs the Selector loop on Windows
if sys.platform.startswith("win"):
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

import uvicorn

from assist_runtime.config import get_config


def main():
    config = get_config()
    uvicorn.run(
        "assist_runtime.server:app",
        host=config.host,
        port=config.port,
        reload=False,
    )


if __name__ == "__main__":
    main()
