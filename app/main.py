# app/main.py
import uvicorn

from app.api import create_app
from app.data.database import init_db
from app.utils.settings import SERVER_HOST, SERVER_PORT
from app.utils.logging import get_logger

logger = get_logger(__name__)

logger.info("Initializing database...")
init_db()
logger.info("Database tables ready")

app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host=SERVER_HOST, port=SERVER_PORT)
