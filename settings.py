from pathlib import Path
from config.loader import get_config_loader

# Get the config loader instance
config = get_config_loader()

LOG_LEVEL = config.get("LOG_LEVEL", "info")

# Timeout configuration
# Connection timeout: Time to establish TCP connection
CONNECT_TIMEOUT = config.get("CONNECT_TIMEOUT", 10.0)
# Request timeout: Total timeout for API calls (folder creation, existence checks, tags)
REQUEST_TIMEOUT = config.get("REQUEST_TIMEOUT", 60.0)
# File upload timeouts (seconds): uploads stream large media and get their own client
FILE_UPLOAD_READ_TIMEOUT = config.get("FILE_UPLOAD_READ_TIMEOUT", 60.0)
FILE_UPLOAD_WRITE_TIMEOUT = config.get("FILE_UPLOAD_WRITE_TIMEOUT", 60.0)
# Token endpoint timeout
TOKEN_REQUEST_TIMEOUT = config.get("TOKEN_REQUEST_TIMEOUT", 30.0)

# Seconds before the recorded expiry at which a credential counts as expired
TOKEN_EXPIRY_BUFFER = config.get("TOKEN_EXPIRY_BUFFER", 5)

# Destinations reject longer descriptions
MAX_DESCRIPTION_LENGTH = config.get("MAX_DESCRIPTION_LENGTH", 1000)

# Job-scoped temp blob store for large media
BLOB_STORE_DIR = config.get("BLOB_STORE_DIR", str(Path.home() / ".transfer-jobs" / "blobs"))

# Pod (PKCE provider)
POD_BASE_URL = config.get("POD_BASE_URL", "http://localhost:3000")
POD_AUTH_URL = config.get("POD_AUTH_URL", f"{POD_BASE_URL}/idp/auth")
POD_TOKEN_URL = config.get("POD_TOKEN_URL", f"{POD_BASE_URL}/idp/token")

# Neil (client secret provider)
NEIL_BASE_URL = config.get("NEIL_BASE_URL", "http://localhost:53010")
NEIL_AUTH_URL = config.get("NEIL_AUTH_URL", f"{NEIL_BASE_URL}/uaa/oauth/authorize")
NEIL_TOKEN_URL = config.get("NEIL_TOKEN_URL", f"{NEIL_BASE_URL}/uaa/oauth/token")
