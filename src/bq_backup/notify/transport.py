"""HTTP delivery of webhook payloads."""

import logging
from typing import Any

import requests

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


def post_json(url: str, payload: dict[str, Any], timeout: float = DEFAULT_TIMEOUT) -> int:
    """POST a JSON payload and return the response status code.

    Raises:
        requests.RequestException: On transport errors
    """
    response = requests.post(url, json=payload, timeout=timeout)
    try:
        return response.status_code
    finally:
        response.close()


def deliver(channel: str, url: str, payload: dict[str, Any], post=post_json) -> bool:
    """Send a payload, logging instead of raising when delivery fails.

    Returns:
        True if the endpoint answered with a 2xx status
    """
    try:
        status = post(url, payload)
    except requests.RequestException as e:
        logger.error("Failed to send %s notification: %s", channel, e)
        return False

    if not 200 <= status < 300:
        logger.error(
            "Failed to send %s notification, received status code: %d", channel, status
        )
        return False

    logger.debug("%s notification delivered (%d)", channel, status)
    return True
