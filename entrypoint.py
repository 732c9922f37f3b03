import uvicorn
import os
from logging_config import setup_logging
import constants

# Setup logging before importing app
setup_logging(log_level=constants.LOG_LEVEL, log_file=constants.LOG_FILE)

from logging_config import get_logger

logger = get_logger(__name__)


def tls_options() -> dict:
    if os.path.isfile(constants.SSL_KEY) and os.path.isfile(constants.SSL_CERT):
        return {"ssl_keyfile": constants.SSL_KEY, "ssl_certfile": constants.SSL_CERT}
    logger.warning(f"TLS key/cert not found ({constants.SSL_KEY}, {constants.SSL_CERT}), serving plain HTTP; browsers need HTTPS for camera access")
    return {}


if __name__ == "__main__":
    ssl = tls_options()
    scheme = "https" if ssl else "http"
    logger.info(f"Starting appraisal relay on {scheme}://{constants.HOST}:{constants.PORT}")
    uvicorn.run("app:create_app", factory=True, host=constants.HOST, port=constants.PORT, reload=constants.RELOAD, **ssl)
