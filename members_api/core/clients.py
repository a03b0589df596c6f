"""
Client Construction
Builds the AWS client handles used by repositories and services.

Handles are created once by the process entry point and passed into the
components that need them; nothing here is module-global.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

import boto3
from botocore.config import Config

from members_api.core.config import Settings

logger = logging.getLogger(__name__)


@dataclass
class AwsClients:
    """Bundle of AWS handles shared by one process."""
    dynamodb: Any
    s3: Optional[Any]
    bedrock: Any


def build_aws_clients(settings: Settings) -> AwsClients:
    """Create DynamoDB, S3 and Bedrock runtime handles from settings."""
    session = boto3.Session(
        profile_name=settings.AWS_PROFILE or None,
        region_name=settings.AWS_REGION,
    )

    dynamodb = session.resource(
        "dynamodb",
        endpoint_url=settings.DYNAMODB_ENDPOINT or None,
    )

    s3 = None
    if not settings.USE_LOCAL_STORAGE:
        s3 = session.client(
            "s3",
            endpoint_url=settings.S3_ENDPOINT or None,
            config=Config(signature_version="s3v4"),
        )

    bedrock = session.client("bedrock-runtime", region_name=settings.BEDROCK_REGION)

    logger.info(
        f"[Clients] AWS clients ready (region={settings.AWS_REGION}, "
        f"storage={'local' if s3 is None else 's3'})"
    )
    return AwsClients(dynamodb=dynamodb, s3=s3, bedrock=bedrock)
