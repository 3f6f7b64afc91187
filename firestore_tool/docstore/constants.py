"""
Constants for docstore operations.
"""

# Firestore database id used when none is configured
DEFAULT_DATABASE = "(default)"

# Purge behavior
DEFAULT_PAGE_SIZE = 100  # Documents listed and deleted per round trip

# Firestore limits
MAX_BATCH_WRITES = 500  # Max writes in one batch or transaction
MAX_DOCUMENT_ID_BYTES = 1500

# Transaction behavior
DEFAULT_TRANSACTION_ATTEMPTS = 5  # Attempts before the SDK gives up on contention

# Value encoding markers accepted in JSON input
MARKER_DELETE = "$delete"
MARKER_SERVER_TIMESTAMP = "$serverTimestamp"
MARKER_TIMESTAMP = "$timestamp"

# Environment variables
ENV_PROJECT = "GOOGLE_CLOUD_PROJECT"
ENV_DATABASE = "FIRESTORE_DATABASE"
