import os

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", 3000))
RELOAD = os.getenv("RELOAD", "false").lower() in ("1", "true", "yes")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE", None)

# TLS is only enabled when both files exist
SSL_KEY = os.getenv("SSL_KEY", "key.pem")
SSL_CERT = os.getenv("SSL_CERT", "cert.pem")

CAPTURE_DIR = os.getenv("CAPTURE_DIR", "capture")
STATIC_DIR = os.getenv("STATIC_DIR", "public")

PUBLIC_SCHEME = os.getenv("PUBLIC_SCHEME", "https")
SESSION_ID_LENGTH = int(os.getenv("SESSION_ID_LENGTH", 6))

MAX_SNAP_BODY_BYTES = int(os.getenv("MAX_SNAP_BODY_BYTES", 25 * 1024 * 1024))

# Time a closing connection gets to flush its queued outbound frames
WRITER_DRAIN_SECONDS = float(os.getenv("WRITER_DRAIN_SECONDS", 1.0))
