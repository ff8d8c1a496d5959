"""
OTP delivery through the 2Factor SMS API.

Without ``TWOFACTOR_API_KEY`` every function works in mock mode: no HTTP
call is made and the configured ``MOCK_OTP_CODE`` is accepted. Mock mode
is refused when ``ALLOW_MOCK_OTP`` is off (production).

Provider failures are logged and reported as ``(False, message)``; no
function here raises on network or API errors.
"""
import logging
import re
import time

import requests
from flask import current_app

logger = logging.getLogger(__name__)

TWOFACTOR_BASE_URL = "https://2factor.in/API/V1"
REQUEST_TIMEOUT = 10
NOT_CONFIGURED = "OTP service is not configured"


def format_phone(phone):
    """Prefix a 10-digit Indian number with the 91 country code.

        "9876543210"    -> "919876543210"
        "919876543210"  -> "919876543210"
    """
    digits = re.sub(r"\D", "", phone or "")
    if len(digits) == 10:
        return "91{}".format(digits)
    return digits


def is_mock_mode():
    return not current_app.config.get("TWOFACTOR_API_KEY")


def mock_allowed():
    return bool(current_app.config.get("ALLOW_MOCK_OTP"))


def send_otp(phone):
    """Ask the provider to send an OTP.

    Returns:
        tuple: (ok, session_id or error message)
    """
    if is_mock_mode():
        if not mock_allowed():
            logger.error("TWOFACTOR_API_KEY is not set and mock OTP is disabled; refusing OTP send")
            return False, NOT_CONFIGURED
        session_id = "mock_{}".format(int(time.time() * 1000))
        logger.info("OTP mock session created for %s", phone[-4:])
        return True, session_id

    api_key = current_app.config["TWOFACTOR_API_KEY"]
    url = "{}/{}/SMS/{}/AUTOGEN".format(TWOFACTOR_BASE_URL, api_key, format_phone(phone))
    try:
        response = requests.get(url, timeout=REQUEST_TIMEOUT)
        data = response.json()
    except (requests.RequestException, ValueError) as e:
        logger.error("2Factor send failed for %s: %s", phone[-4:], e)
        return False, "Failed to send OTP"

    if data.get("Status") == "Success":
        return True, data.get("Details")
    logger.warning("2Factor refused OTP send for %s: %s", phone[-4:], data.get("Details"))
    return False, data.get("Details") or "Failed to send OTP"


def verify_otp(session_id, otp):
    """Check an OTP against a provider session.

    Returns:
        tuple: (ok, error message or None)
    """
    if session_id.startswith("mock_"):
        if not mock_allowed():
            logger.warning("Mock OTP session rejected: mock OTP is disabled")
            return False, NOT_CONFIGURED
        if otp == current_app.config.get("MOCK_OTP_CODE"):
            return True, None
        return False, "Invalid OTP"

    api_key = current_app.config["TWOFACTOR_API_KEY"]
    # otp is caller input; keep it inside its own path segment
    url = "{}/{}/SMS/VERIFY/{}/{}".format(
        TWOFACTOR_BASE_URL,
        api_key,
        requests.utils.quote(session_id, safe=""),
        requests.utils.quote(otp, safe=""),
    )
    try:
        response = requests.get(url, timeout=REQUEST_TIMEOUT)
        data = response.json()
    except (requests.RequestException, ValueError) as e:
        logger.error("2Factor verify failed: %s", e)
        return False, "Could not verify OTP, please retry"

    if data.get("Status") == "Success":
        return True, None
    return False, data.get("Details") or "Invalid OTP"
