"""Run the API server: ``python -m icebreaker``."""
import uvicorn

from icebreaker.core.config import settings

if __name__ == "__main__":
    uvicorn.run("icebreaker.main:app", host=settings.host, port=settings.port, reload=settings.debug)
