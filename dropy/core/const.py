import os

API_URL = os.getenv("DROPY_API_URL", "https://api.dropboxapi.com/2")
CONTENT_URL = os.getenv("DROPY_CONTENT_URL", "https://content.dropboxapi.com/2")
ACCESS_TOKEN_ENV_VAR = "DROPBOX_ACCESS_TOKEN"

# Upload sessions split payloads into chunks of this many bytes unless told
# otherwise. No single request may carry more than MAX_REQUEST_SIZE bytes.
DEFAULT_CHUNK_SIZE = int(os.getenv("DROPY_DEFAULT_CHUNK_SIZE", "125000000"))
MAX_REQUEST_SIZE = int(os.getenv("DROPY_MAX_REQUEST_SIZE", "150000000"))

REQUEST_TIMEOUT = float(os.getenv("DROPY_REQUEST_TIMEOUT", "300"))
