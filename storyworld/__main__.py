import uvicorn

from .config import configure_logging, load_settings
from .main import create_app


def main() -> None:
    settings = load_settings()
    configure_logging(settings.log_level)
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    main()
