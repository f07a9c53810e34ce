"""
logging_config.py - central logging setup for the canteen ordering service.

Every module logs through ``logging.getLogger(__name__)``; this module only
decides where those records go and how they look.
"""

import logging
import os
import sys

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = "%(asctime)s - %(levelname)s - [PID:%(process)d] - %(name)s - %(message)s"


def setup_logging(level=LOG_LEVEL):
    """
    Configure the root logger once for the process.

    Logs go to stdout so container runtimes and Lambda pick them up.
    boto3/botocore are turned down to WARNING, otherwise every request
    they sign shows up at INFO.
    """
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    for noisy in ("boto3", "botocore", "urllib3"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
