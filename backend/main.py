import os
import logging
import uvicorn

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)

if os.environ.get("DEBUG", "0") == "1":
    logging.getLogger().setLevel(logging.DEBUG)

from api import create_app
from config import get_config

config = get_config()
app = create_app(config)


def run():
    logger.info(f"Starting Echo Minutes on {config.host}:{config.port}")
    if config.openai_api_key is None:
        logger.warning("OPENAI_API_KEY is not set; minutes jobs will be rejected")
    logger.info(f"Models: transcription={config.transcription_model}, analysis={config.analysis_model}")
    uvicorn.run(app, host=config.host, port=config.port)


if __name__ == "__main__":
    run()
