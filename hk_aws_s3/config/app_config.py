"""
Application configuration and logging setup.
"""

import logging
import os
import sys

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Object storage connection
HK_S3_REGION = os.environ.get('HK_S3_REGION') or os.environ.get('AWS_REGION', 'ap-northeast-1')
HK_S3_ACCESS_KEY_ID = os.environ.get('HK_S3_ACCESS_KEY_ID')
HK_S3_SECRET_ACCESS_KEY = os.environ.get('HK_S3_SECRET_ACCESS_KEY')
HK_S3_SESSION_TOKEN = os.environ.get('HK_S3_SESSION_TOKEN')
HK_S3_ENDPOINT_URL = os.environ.get('HK_S3_ENDPOINT_URL')
if HK_S3_ENDPOINT_URL:
    HK_S3_ENDPOINT_URL = HK_S3_ENDPOINT_URL.split('#')[0].strip()
HK_S3_USE_PATH_STYLE = os.environ.get('HK_S3_USE_PATH_STYLE', 'false').lower() == 'true'
HK_S3_VERIFY_SSL = os.environ.get('HK_S3_VERIFY_SSL', 'true').lower() == 'true'

# Location registry source (None = bundled buckets.json)
HK_S3_LOCATIONS_FILE = os.environ.get('HK_S3_LOCATIONS_FILE') or None

# Public asset hosts
HK_S3_LEGACY_CDN_BASE = os.environ.get('HK_S3_LEGACY_CDN_BASE', 'https://img.holkee.com')
HK_S3_NEW_CDN_BASE = os.environ.get('HK_S3_NEW_CDN_BASE', 'https://cdn.holkee.com')

# Bucket used for keys that match no registered root path
HK_S3_FALLBACK_BUCKET = os.environ.get('HK_S3_FALLBACK_BUCKET', 'holkee')

LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO').upper()


def configure_logging(level: str = None):
    """Install a single stdout handler on the root logger."""
    level = (level or LOG_LEVEL).upper()
    # Unknown names come back as "Level <name>" strings
    if not isinstance(logging.getLevelName(level), int):
        level = 'INFO'
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    handler.setFormatter(formatter)

    # Clear any existing handlers to avoid duplicates
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(level)
    root_logger.addHandler(handler)

    # botocore is chatty at DEBUG
    logging.getLogger('botocore').setLevel(max(logging.getLevelName(level), logging.INFO))
    return root_logger
