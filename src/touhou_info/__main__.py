"""Entry point for running as a module."""
from touhou_info.api import app
from touhou_info.config import load_local_env_file
import uvicorn
import os

if __name__ == "__main__":
    load_local_env_file()
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
