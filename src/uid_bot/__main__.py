"""Run the bot with uvicorn: ``python -m uid_bot``."""

from __future__ import annotations

import uvicorn

from .main import create_app
from .settings import BotSettings


def main() -> None:
    settings = BotSettings.from_env()
    app = create_app(settings)
    uvicorn.run(app, host="0.0.0.0", port=settings.port, log_config=None)


if __name__ == "__main__":
    main()
