"""
Entry point: python wsgi.py
"""
import logging
import os

logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO"),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S"
)

from app import create_app
from app.services.pdf_service import supported_extensions

app = create_app(os.environ.get("FLASK_ENV", "production"))

app.logger.info(
    "Supported formats: %s",
    ", ".join(e.lstrip(".").upper() for e in supported_extensions(app.config["DOCUMENT_CONVERSION_ENABLED"])),
)

if __name__ == "__main__":
    port = app.config["PORT"]
    app.logger.info(f"Server starting on http://localhost:{port}")
    app.run(host="0.0.0.0", port=port, debug=app.config.get("DEBUG", False))
