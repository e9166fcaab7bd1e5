from __future__ import annotations

import logging
import os

import uvicorn


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    port = int(os.environ.get("PORT", "8080"))
    uvicorn.run("activity_backend.main:app", host="0.0.0.0", port=port, log_level="info")


if __name__ == "__main__":
    main()
