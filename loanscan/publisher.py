import json
import logging

from pathlib import Path
from typing import Any, Dict, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from loanscan.exceptions import PublishFailure
from loanscan.types import DEFAULT_BUCKET, DEFAULT_OBJECT_KEY, DEFAULT_REGION

logger = logging.getLogger(__name__)


def write_report(path: str, data: str) -> Path:
    """Persist the serialized report locally, UTF-8 encoded."""
    output = Path(path)
    output.write_text(data, encoding="utf-8")
    logger.info(f"💾 Report written to {output}")
    return output


def read_only_policy(bucket: str, key: str) -> Dict[str, Any]:
    """Bucket policy granting anonymous read access to `bucket/key` only."""
    return {
        "Version": "2012-10-17",
        "Statement": [
            {
                "Sid": "AddPerm",
                "Effect": "Allow",
                "Principal": "*",
                "Action": ["s3:GetObject"],
                "Resource": [f"arn:aws:s3:::{bucket}/{key}"],
            }
        ],
    }


class S3Publisher:
    """
    Uploads the report to S3 and (re)applies the public read policy.
    """

    bucket: str
    key: str

    def __init__(
        self,
        bucket: str = DEFAULT_BUCKET,
        key: str = DEFAULT_OBJECT_KEY,
        region: str = DEFAULT_REGION,
        s3_client: Optional[Any] = None,
    ) -> None:
        self.bucket = bucket
        self.key = key
        self.client = s3_client or boto3.session.Session().client(
            service_name="s3", region_name=region
        )

    def publish(self, data: str) -> None:
        """
        Upload `data` then set the bucket policy.

        Raises:
            PublishFailure: if either call fails. Nothing already written,
                locally or remotely, is rolled back.
        """
        self.upload(data)
        self.set_bucket_policy()

    def upload(self, data: str) -> None:
        logger.info(f"📤 Uploading report to s3://{self.bucket}/{self.key}...")
        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=self.key,
                Body=data.encode("utf-8"),
                ContentType="application/json",
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(f"⛔ Upload to s3://{self.bucket}/{self.key} failed: {e}")
            raise PublishFailure(
                f"Could not upload report to s3://{self.bucket}/{self.key}: {e}"
            ) from e
        logger.info("... uploaded!")

    def set_bucket_policy(self) -> None:
        logger.info(f"🔓 Setting read-only policy on {self.bucket}/{self.key}...")
        try:
            self.client.put_bucket_policy(
                Bucket=self.bucket,
                Policy=json.dumps(read_only_policy(self.bucket, self.key)),
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(f"⛔ Setting the policy of {self.bucket} failed: {e}")
            raise PublishFailure(f"Could not set the policy of {self.bucket}: {e}") from e
        logger.info("... policy set!")
