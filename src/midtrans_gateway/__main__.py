import uvicorn

from midtrans_gateway.core.settings import settings


def main() -> None:
    uvicorn.run(
        "midtrans_gateway.app:create_app",
        factory=True,
        reload=settings.environment == "development",
    )


if __name__ == "__main__":
    main()
