from prometheus_fastapi_instrumentator import Instrumentator

from . import create_app
from .core.config import get_settings
from .core.logging import configure_logging

settings = get_settings()
configure_logging(settings.LOG_LEVEL)
app = create_app(settings)
Instrumentator().instrument(app).expose(app, include_in_schema=False)


def run() -> None:
    import uvicorn

    uvicorn.run("duka.main:app", host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    run()
