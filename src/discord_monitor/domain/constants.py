"""Fixed operating constants."""

from datetime import timedelta

# Messages older than this are purged by the retention sweep
RETENTION_WINDOW = timedelta(days=14)
RETENTION_DAYS = RETENTION_WINDOW.days

# Retention sweep period in seconds
CLEANUP_INTERVAL_SECONDS = 60 * 60

COMMAND_PREFIX = "!"
COMMAND_LOG_LIMIT = 1000

BOT_STATUS_ID = 1

# Storage capacity ceiling used for the usage percentage (100 MB)
STORAGE_LIMIT_KB = 100 * 1024
