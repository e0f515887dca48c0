import logging
import os

import uvicorn
from dotenv import load_dotenv

from artisign.backend.api.app import create_app

load_dotenv()
logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")

app = create_app()


if __name__ == "__main__":
    try:
        uvicorn.run(app, host=os.getenv("HOST", "0.0.0.0"), port=int(os.getenv("PORT", "8000")))
    except KeyboardInterrupt:
        print("Exit")
