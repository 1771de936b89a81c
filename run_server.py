# run_server.py
import logging
import uvicorn
from app.core.config import settings

# Настраиваем логирование так же, как в main.py
log_level = settings.LOGGING_LEVEL.upper()
logging.basicConfig(
    level=log_level,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)

logger = logging.getLogger(__name__)


if __name__ == "__main__":
    logger.info(f"Server is starting on http://0.0.0.0:{settings.PORT}")
    try:
        uvicorn.run("app.main:app", host="0.0.0.0", port=settings.PORT, log_level=log_level.lower())
    except (KeyboardInterrupt, SystemExit):
        logger.info("Server stopped by user.")
