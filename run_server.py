#!/usr/bin/env python3
"""Run the mdnotes bridge server."""
import os
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))

from dotenv import load_dotenv
load_dotenv()


def main():
    import uvicorn

    host = os.getenv("SERVER_HOST", "127.0.0.1")
    port = int(os.getenv("SERVER_PORT", 8000))
    reload = os.getenv("SERVER_RELOAD", "false").lower() == "true"

    print(f"mdnotes server on http://{host}:{port} (docs at /docs, reload={reload})")

    uvicorn.run(
        "server.app:app",
        host=host,
        port=port,
        reload=reload,
    )


if __name__ == "__main__":
    main()
