"""Hugging Face Spaces entry point."""

import logging

from quantum_vacuum.core.config import LOG_LEVEL
from quantum_vacuum.visualization.dash_app import app

server = app.server  # expose Flask server for gunicorn fallback

if __name__ == "__main__":
    import os
    logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    port = int(os.environ.get("PORT", 7860))
    app.run(host="0.0.0.0", debug=False, port=port)
