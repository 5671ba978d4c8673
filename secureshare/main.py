"""
main.py

SecureShare server: temporary storage for client-side encrypted files.

Usage:
  python -m secureshare.main
  secureshare

Notes:
  - API endpoints available at /api/ with Swagger docs at /api/docs
  - Stored files live under UPLOAD_DIR and are deleted when they expire
  - Nothing survives a restart; leftover payloads are purged on startup
"""

import logging
import signal
import sys

from .app_factory import AppConfig, create_app

logger = logging.getLogger("secureshare")


def _install_signal_handlers(app) -> None:
    """Stop registered components and exit cleanly on SIGTERM/SIGINT."""

    def handle_shutdown(signum, frame):
        logger.info(f"Received {signal.Signals(signum).name}, shutting down gracefully")
        app.container.shutdown()
        sys.exit(0)

    signal.signal(signal.SIGTERM, handle_shutdown)
    signal.signal(signal.SIGINT, handle_shutdown)


def main() -> None:
    config = AppConfig()

    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    app = create_app(config)
    _install_signal_handlers(app)

    logger.info(f"SecureShare server running on port {config.port}")
    logger.info(f"Upload directory: {config.transfer.upload_dir}")

    app.run(host=config.host, port=config.port, threaded=True)


if __name__ == "__main__":
    main()
