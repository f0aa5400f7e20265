"""Network configuration constants for the exam client and practice server."""

DEFAULT_API_BASE_URL: str = "http://127.0.0.1:8000"
DEFAULT_HOST: str = "127.0.0.1"
DEFAULT_PORT: int = 8000
REQUEST_TIMEOUT_SECONDS: float = 10.0
# Answer pushes, submits and negotiation share this pool; a submit waits on pushes.
BACKGROUND_WORKER_COUNT: int = 4
SUBMIT_FLUSH_TIMEOUT_SECONDS: float = 3.0
