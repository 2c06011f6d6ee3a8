"""Environment configuration and business constants."""
import os

# Logging
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
STOREFRONT_ENV = os.environ.get("STOREFRONT_ENV", "development")

# Storage namespace, keeps storefront keys apart from anything else in Redis
STOREFRONT_KEY_PREFIX = os.environ.get("STOREFRONT_KEY_PREFIX", "storefront")

# Upstash Redis - standard env var names per docs
UPSTASH_REDIS_REST_URL = os.environ.get("UPSTASH_REDIS_REST_URL", "")
UPSTASH_REDIS_REST_TOKEN = os.environ.get("UPSTASH_REDIS_REST_TOKEN", "")

# Cart rules
MIN_QUANTITY = 1
MAX_QUANTITY = 10

# Signup rules
MIN_PASSWORD_LENGTH = 6
