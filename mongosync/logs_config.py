##################################################################################################
#                                        OVERVIEW                                                #
#                                                                                                #
# Logging setup shared by every module of the sync engine. Import the ready-made `logger`        #
# instance instead of configuring logging again in each module.                                  #
# Level and log file location are read from environment variables using dotenv.                 #
##################################################################################################


##################################################################################################
#                                            IMPORTS                                             #
##################################################################################################

import logging
import os
import sys
from logging.handlers import RotatingFileHandler

from dotenv import load_dotenv

##################################################################################################
#                                        LOGGER SETUP                                            #
##################################################################################################

load_dotenv()  # Load environment variables from .env

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE", "logs/mongosync.log")

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logger(name="mongosync", level=LOG_LEVEL, log_file=LOG_FILE):
    """
    Builds the engine logger with a console handler and, when possible, a rotating file handler.

    Calling it again for the same name replaces the handlers rather than stacking new ones,
    so log lines are never duplicated.

    Args:
        name (str): Logger name.
        level (str): Level name such as "INFO" or "DEBUG".
        log_file (str | None): Path of the rotating log file. None disables file logging.

    Returns:
        logging.Logger: The configured logger.
    """

    new_logger = logging.getLogger(name)
    new_logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))
    new_logger.handlers.clear()
    new_logger.propagate = False

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    new_logger.addHandler(console_handler)

    if log_file:
        try:
            log_dir = os.path.dirname(log_file)
            if log_dir:
                os.makedirs(log_dir, exist_ok=True)
            file_handler = RotatingFileHandler(
                log_file,
                maxBytes=10 * 1024 * 1024,  # 10MB
                backupCount=5,
                encoding="utf-8",
            )
        except OSError as e:
            new_logger.warning(f"File logging disabled, cannot open {log_file}: {e}")
        else:
            file_handler.setFormatter(formatter)
            new_logger.addHandler(file_handler)

    return new_logger


logger = setup_logger()
