# playground/utils/ssm.py
from functools import lru_cache
import os

import boto3


@lru_cache(maxsize=None)
def _ssm_client(region: str):
    return boto3.client("ssm", region_name=region)

def _region() -> str:
    return os.getenv("AWS_DEFAULT_REGION") or os.getenv("AWS_REGION") or "us-east-1"

def get_param(name: str, decrypt: bool = True) -> str:
    """Read one playground setting from SSM Parameter Store. AWS errors propagate."""
    resp = _ssm_client(_region()).get_parameter(Name=name, WithDecryption=decrypt)
    return resp["Parameter"]["Value"]
