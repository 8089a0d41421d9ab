"""
Entry point for the sinking fund contribution service.

Run with:
    python app.py

Or with a production WSGI server:
    gunicorn -w 4 app:application
"""

import logging

from sinkingfund import create_app

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

application = create_app()

if __name__ == "__main__":
    application.run(host="0.0.0.0", port=5000, debug=False)
