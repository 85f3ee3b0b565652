import uvicorn

from .core.settings import settings


def main() -> None:
    uvicorn.run("crm_server.main:app", host=settings.HOST, port=settings.PORT, reload=False)


if __name__ == "__main__":
    main()
