# ABOUTME: Development launcher: `python -m pws_dashboard` serves the weather API with uvicorn.
# ABOUTME: Host and port come from HOST and PORT, defaulting to 127.0.0.1:8000.

import logging
import os

import uvicorn

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    uvicorn.run(
        "pws_dashboard.web:app",
        host=os.environ.get("HOST", "127.0.0.1"),
        port=int(os.environ.get("PORT", "8000")),
    )
