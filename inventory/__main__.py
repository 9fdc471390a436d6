import uvicorn
from inventory.config import settings
from inventory.logger import configure_logging, get_logger


logger = get_logger("inventory")


def main():
    configure_logging(settings.log_level)
    logger.info("Server starting on port %s in %s mode", settings.port, settings.app_env)
    uvicorn.run("inventory.main:app", host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    main()
