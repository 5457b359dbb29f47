# playground/config.py
from dotenv import load_dotenv
from datetime import datetime, timedelta, timezone
import logging
import os
from typing import Optional

from botocore.exceptions import BotoCoreError, ClientError

# load local .env if present
load_dotenv()

logger = logging.getLogger(__name__)

def _get_param_from_ssm(name: str, decrypt: bool = False) -> Optional[str]:
    """
    Try to fetch from SSM when SSM_PARAMETER_PREFIX is set. The ssm helper is
    imported lazily so a plain local run never touches AWS.
    """
    prefix = os.getenv("SSM_PARAMETER_PREFIX")
    if not prefix:
        return None
    try:
        from .utils.ssm import get_param
        return get_param(f"{prefix}{name}", decrypt=decrypt)
    except (BotoCoreError, ClientError) as e:
        logger.debug("SSM lookup for %s failed: %s", name, e)
        return None

def _get_param_with_fallback(name: str, decrypt: bool = False, default: Optional[str] = None) -> Optional[str]:
    val = _get_param_from_ssm(name, decrypt=decrypt)
    if val:
        return val
    return os.getenv(name) or default

def get_storage_file(storage_path: str, now: Optional[datetime] = None) -> str:
    """One store file per ISO week: <storage_path>/playground.<year><week>.db"""
    now = now or datetime.now(timezone.utc)
    year, week, _ = now.isocalendar()
    return os.path.join(storage_path, f"playground.{year}{week:02d}.db")

class Config:
    STORAGE_PATH = _get_param_with_fallback("STORAGE_PATH", default="./")
    # public base url of this playground, webhooks are delivered to <base>/app/<app_id>
    KANTHOR_PLAYGROUND_ENDPOINT = _get_param_with_fallback("KANTHOR_PLAYGROUND_ENDPOINT", default="")
    KANTHOR_SDK_ENDPOINT_PUBLIC = _get_param_with_fallback("KANTHOR_SDK_ENDPOINT_PUBLIC", default="")
    KANTHOR_SDK_HOST = _get_param_with_fallback("KANTHOR_SDK_HOST", default="")
    KANTHOR_PORTAL_ENDPOINT = _get_param_with_fallback("KANTHOR_PORTAL_ENDPOINT", default="")
    KANTHOR_PORTAL_AUTH_CREDENTIALS = _get_param_with_fallback("KANTHOR_PORTAL_AUTH_CREDENTIALS", decrypt=True, default="")
    PORT = int(_get_param_with_fallback("PORT", default="9081"))

    BOOTSTRAP_TIMEOUT = 60
    MESSAGE_TTL = timedelta(hours=24)
    PRINTOUT_TTL = timedelta(hours=1)
