"""Main entry point for the Starknet operator."""

import logging
import sys

import kopf

from starknet_operator.config import get_settings
from starknet_operator.handlers import starknetrpc_handler  # noqa: F401

logger = logging.getLogger(__name__)


def main() -> None:
    """Run the Starknet operator."""
    settings = get_settings()

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stdout,
    )

    logger.info("Starting Starknet Operator")
    if settings.namespace:
        logger.info(f"Watching for StarknetRPC custom resources in namespace {settings.namespace}")
        kopf.run(
            namespaces=[settings.namespace],
            liveness_endpoint=settings.liveness_endpoint,
        )
    else:
        logger.info("Watching for StarknetRPC custom resources in all namespaces")
        kopf.run(
            clusterwide=True,
            liveness_endpoint=settings.liveness_endpoint,
        )


if __name__ == "__main__":
    main()
