"""Run the gateway with uvicorn: ``python -m otp_gateway``."""

import uvicorn

from otp_gateway.config import settings


def main() -> None:
    uvicorn.run(
        "otp_gateway.main:app",
        host=settings.host,
        port=settings.port,
        log_level="debug" if settings.debug else "info",
    )


if __name__ == "__main__":
    main()
