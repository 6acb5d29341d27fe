# src/channel_gate/run.py

import uvicorn

from .config import settings


def main() -> None:
    uvicorn.run(
        "channel_gate.main:app",
        host=str(settings.HOST),
        port=int(settings.PORT),
        reload=False,
    )


if __name__ == "__main__":
    main()
