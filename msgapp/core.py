import os
import logging
from prometheus_client import start_http_server

from .models import init_db
from .crud import reset_all_statuses

logger = logging.getLogger(__name__)

METRICS_PORT = os.getenv('METRICS_PORT')

_BOOTSTRAPPED = False


def init_metrics(port: int):
    """Initialize Prometheus metrics server"""
    try:
        start_http_server(port)
        logger.info(f'Prometheus metrics server started on port {port}')
    except OSError as e:
        logger.warning(f'Prometheus start failed: {e}')


async def bootstrap(force: bool = False) -> bool:
    """One-shot process initialisation.

    Creates missing tables, then puts every user OFFLINE: presence left over
    from a previous run is stale because sessions have no heartbeat.
    Returns False when the process was already bootstrapped.
    """
    global _BOOTSTRAPPED
    if _BOOTSTRAPPED and not force:
        return False
    await init_db()
    logger.info('Application started - Resetting all user statuses to OFFLINE')
    count = await reset_all_statuses()
    logger.info(f'Reset {count} user statuses to OFFLINE')
    if METRICS_PORT:
        init_metrics(int(METRICS_PORT))
    _BOOTSTRAPPED = True
    return True
