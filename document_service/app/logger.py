import logging
import sys
from pathlib import Path

from .config import LOG_LEVEL

# Log file lives next to the package, one per service
logs_dir = Path(__file__).parent / "logs"
logs_dir.mkdir(exist_ok=True)

# Configure logging
logging.basicConfig(
    level=LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(sys.stdout),
        logging.FileHandler(logs_dir / "document_service.log")
    ]
)

# Modules log under their own dotted name
def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
