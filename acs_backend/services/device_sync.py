"""
Data/config reload notifications for the device backend.

After credentials, groups or boards change, the device backend is asked
to reload its copy of the stores (type 1) or of the controller config
(type 3). The notification is fire-and-forget: it runs after the HTTP
response and only logs failures.
"""

from __future__ import annotations

import logging

import requests

from ..core.config import Settings


SYNC_TYPE_DATA = 1
SYNC_TYPE_CONFIG = 3


def perform_sync(settings: Settings, sync_type: int) -> bool:
    logger = logging.getLogger("device-sync")
    if not settings.device_sync_enabled:
        logger.debug("Device sync disabled; skipping type=%s", sync_type)
        return False
    base = settings.device_backend_url
    url = (base if base.endswith("/") else base + "/") + "api/datasync"
    logger.info("DataSync <- type=%s", sync_type)
    try:
        resp = requests.post(url, data={"type": str(sync_type)}, timeout=settings.device_timeout_sec)
    except requests.RequestException as exc:
        logger.warning("DataSync request failed (%s): %s", url, exc)
        return False
    if resp.status_code >= 300:
        logger.warning("DataSync answered HTTP %s", resp.status_code)
        return False
    try:
        parsed = resp.json()
    except ValueError:
        logger.warning("DataSync reply is not JSON: %s", resp.text[:200])
        return False
    logger.info("DataSync -> %s", parsed)
    return True


def data_sync(settings: Settings) -> bool:
    return perform_sync(settings, SYNC_TYPE_DATA)


def config_sync(settings: Settings) -> bool:
    return perform_sync(settings, SYNC_TYPE_CONFIG)
