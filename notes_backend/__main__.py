"""Notes service entrypoint.

Run with:
  python -m notes_backend
"""

import os
import uvicorn

from notes_backend.api.config import configure_logging, load_settings
from notes_backend.api.main import create_app

def main() -> None:
    host = os.getenv("NOTES_HOST", "0.0.0.0")
    port = int(os.getenv("NOTES_PORT", "8000"))
    settings = load_settings()
    configure_logging(settings.log_level)
    uvicorn.run(create_app(settings), host=host, port=port, log_config=None)

if __name__ == "__main__":
    main()
