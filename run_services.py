import asyncio
import uvicorn

from shared.core.config import settings


async def start_servers():
    config = uvicorn.Config(
        "maintenance_service.app.main:app",
        host=settings.APP_HOST,
        port=settings.APP_PORT,
        reload=False,
    )
    server = uvicorn.Server(config)

    await asyncio.gather(
        server.serve(),
    )

if __name__ == "__main__":
    try:
        asyncio.run(start_servers())
    except KeyboardInterrupt:
        print("\nShutting down servers...")
