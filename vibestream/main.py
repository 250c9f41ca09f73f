# vibestream/main.py
import uvicorn

from vibestream.config import load_settings


def main() -> None:
    settings = load_settings()
    print(f"Server running at http://{settings.host}:{settings.port}")
    uvicorn.run(
        "vibestream.fastapi_app:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
