"""
Production entrypoint for the CMA engine.

Binds to 0.0.0.0:$PORT.
"""

import logging
import os

import uvicorn

if __name__ == "__main__":
    port = int(os.getenv("PORT", "8000"))
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())
    print(f"Starting CMA Engine on port {port}")

    # Import app here to ensure clean module loading
    from web.app import app

    uvicorn.run(app, host="0.0.0.0", port=port)
