"""Object storage keys and presigned POST policies."""

from __future__ import annotations

import base64
import hashlib
import hmac
import json
import logging
import uuid
from datetime import UTC, datetime, timedelta
from typing import Any

logger = logging.getLogger(__name__)


def build_storage_key(
    awb: str,
    filename: str,
    *,
    now: datetime | None = None,
    unique_id: str | None = None,
) -> str:
    """``pods/{year}/{month}/{day}/{awb}_{uniqueId}_{filename}``."""
    now = now or datetime.now(tz=UTC)
    unique_id = unique_id or str(uuid.uuid4())
    return (
        f"pods/{now.year}/{now.month:02d}/{now.day:02d}/"
        f"{awb}_{unique_id}_{filename}"
    )


def content_type_prefix(content_type: str) -> str:
    return content_type.split("/", 1)[0]


class InMemoryObjectStorage:
    """S3-compatible stand-in issuing HMAC-signed POST policies.

    Objects "uploaded" through :meth:`put_object` are kept in memory,
    which is enough for tests and the offline demo.
    """

    def __init__(
        self,
        *,
        bucket_name: str,
        region: str,
        signing_secret: str,
    ) -> None:
        self.bucket_name = bucket_name
        self.region = region
        self.signing_secret = signing_secret
        self.objects: dict[str, bytes] = {}

    @property
    def endpoint(self) -> str:
        return f"https://{self.bucket_name}.s3.{self.region}.amazonaws.com"

    def public_url(self, key: str) -> str:
        return f"{self.endpoint}/{key}"

    def _sign(self, policy: str) -> str:
        return hmac.new(
            self.signing_secret.encode("utf-8"),
            policy.encode("ascii"),
            hashlib.sha256,
        ).hexdigest()

    def create_presigned_post(
        self,
        *,
        key: str,
        content_type: str,
        max_bytes: int,
        expires_in: int,
    ) -> dict[str, Any]:
        expiration = datetime.now(tz=UTC) + timedelta(seconds=expires_in)
        conditions = [
            {"bucket": self.bucket_name},
            {"key": key},
            ["content-length-range", 0, max_bytes],
            [
                "starts-with",
                "$Content-Type",
                content_type_prefix(content_type),
            ],
        ]
        policy = base64.b64encode(
            json.dumps(
                {
                    "expiration": expiration.strftime("%Y-%m-%dT%H:%M:%SZ"),
                    "conditions": conditions,
                }
            ).encode("utf-8")
        ).decode("ascii")
        return {
            "url": self.endpoint,
            "fields": {
                "key": key,
                "Content-Type": content_type,
                "Policy": policy,
                "X-Signature": self._sign(policy),
            },
        }

    def verify_policy(self, fields: dict[str, str]) -> bool:
        expected = self._sign(fields.get("Policy", ""))
        return hmac.compare_digest(expected, fields.get("X-Signature", ""))

    async def put_object(self, key: str, data: bytes) -> None:
        self.objects[key] = data

    async def delete_object(self, key: str) -> None:
        self.objects.pop(key, None)
        logger.info("Deleted object %s from %s", key, self.bucket_name)
