"""Audit logging middleware with personal-data masking."""
from __future__ import annotations

import json
import logging
import random
import time
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Callable
from uuid import uuid4

import boto3
from botocore.exceptions import BotoCoreError, ClientError  # type: ignore[import-untyped]
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response
from starlette.types import ASGIApp

from registry.core.config import Settings

_SENSITIVE_KEYS = {
    "name",
    "email",
    "phone",
    "remarks",
    "password",
    "refresh_token",
    "access_token",
    "ip_address",
}
_SKIPPED_PATHS = {"/metrics", "/api/healthz", "/api/readyz"}


def _mask_string(value: str) -> str:
    if "@" in value:
        local, _, domain = value.partition("@")
        hidden = local[0] + "***" if local else "***"
        return f"{hidden}@{domain}" if domain else "***@***"
    digits = [char for char in value if char.isdigit()]
    if len(digits) > 4 and len(digits) >= len(value.replace(" ", "").replace("+", "")) - 2:
        return f"***{''.join(digits[-4:])}"
    return value


def mask_value(value: Any) -> Any:
    if isinstance(value, dict):
        return mask_mapping(value)
    if isinstance(value, list):
        return [mask_value(item) for item in value]
    if isinstance(value, str):
        return _mask_string(value)
    return value


def mask_mapping(mapping: dict[str, Any]) -> dict[str, Any]:
    sanitized: dict[str, Any] = {}
    for key, value in mapping.items():
        if key.lower() in _SENSITIVE_KEYS:
            if isinstance(value, str) and "@" in value:
                sanitized[key] = _mask_string(value)
            elif isinstance(value, str) and len(value) > 4:
                sanitized[key] = f"***{value[-2:]}"
            else:
                sanitized[key] = "***"
        else:
            sanitized[key] = mask_value(value)
    return sanitized


@dataclass(slots=True)
class AuditLogRecord:
    """Structured log entry emitted by the middleware."""

    timestamp: str
    request_id: str
    method: str
    path: str
    status: int
    duration_ms: float
    actor: str | None
    company: str | None
    ip_address: str | None
    query: dict[str, Any]
    body: Any

    def to_json(self) -> str:
        payload = asdict(self)
        payload["duration_ms"] = round(self.duration_ms, 2)
        return json.dumps(payload, default=str)


class AuditMiddleware(BaseHTTPMiddleware):
    """Logs every request with personal data masked and archives it to S3."""

    def __init__(
        self,
        app: ASGIApp,
        *,
        settings: Settings,
        logger: logging.Logger | None = None,
        s3_client_factory: Callable[[], Any] | None = None,
    ) -> None:
        super().__init__(app)
        self._settings = settings
        self._logger = logger or logging.getLogger("audit")
        self._s3_client_factory = s3_client_factory or self._default_client_factory
        self._s3_client: Any | None = None
        self._bucket_ready = False

    async def dispatch(self, request: Request, call_next: Callable[[Request], Any]) -> Response:
        if request.url.path in _SKIPPED_PATHS:
            return await call_next(request)

        request_id = request.headers.get("X-Request-ID") or uuid4().hex
        request.state.request_id = request_id
        start = time.perf_counter()

        body_bytes = await request.body()
        masked_body = self._mask_body(body_bytes, request.headers.get("content-type", ""))

        response = await call_next(request)

        path_params = request.scope.get("path_params") or {}
        record = AuditLogRecord(
            timestamp=datetime.now(timezone.utc).isoformat(),
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            duration_ms=(time.perf_counter() - start) * 1000,
            actor=getattr(request.state, "actor_email", None),
            company=path_params.get("company"),
            ip_address=request.client.host if request.client else None,
            query=mask_mapping(dict(request.query_params.multi_items())),
            body=masked_body,
        )

        self._logger.info(record.to_json())
        self._persist_to_s3(record)

        response.headers["X-Request-ID"] = request_id
        return response

    @staticmethod
    def _mask_body(body_bytes: bytes, content_type: str) -> Any:
        if not body_bytes:
            return None
        if "json" not in content_type:
            return "<omitted>"
        try:
            return mask_value(json.loads(body_bytes))
        except (json.JSONDecodeError, UnicodeDecodeError):
            return "<unparseable>"

    def _default_client_factory(self) -> Any:
        return boto3.client(
            "s3",
            region_name=self._settings.aws_region,
            endpoint_url=self._settings.s3_endpoint_url,
        )

    def _get_s3_client(self) -> Any:
        if self._s3_client is None:
            self._s3_client = self._s3_client_factory()
        return self._s3_client

    def _ensure_bucket(self, client: Any) -> None:
        if self._bucket_ready:
            return
        bucket = self._settings.audit_log_bucket
        try:
            client.head_bucket(Bucket=bucket)
        except ClientError:
            create_params: dict[str, Any] = {"Bucket": bucket}
            if self._settings.aws_region != "us-east-1" and self._settings.s3_endpoint_url is None:
                create_params["CreateBucketConfiguration"] = {"LocationConstraint": self._settings.aws_region}
            client.create_bucket(**create_params)
        self._bucket_ready = True

    def _persist_to_s3(self, record: AuditLogRecord) -> None:
        sample_rate = self._settings.audit_log_sample_rate
        if sample_rate <= 0:
            return
        if sample_rate < 1 and random.random() > sample_rate:
            return

        try:
            client = self._get_s3_client()
            self._ensure_bucket(client)
            client.put_object(
                Bucket=self._settings.audit_log_bucket,
                Key=self._record_key(record),
                Body=record.to_json().encode("utf-8"),
                ContentType="application/json",
            )
        except (BotoCoreError, ClientError) as exc:  # pragma: no cover - S3 connectivity issues
            self._logger.error("failed to persist audit record", extra={"error": str(exc)})

    def _record_key(self, record: AuditLogRecord) -> str:
        now = datetime.now(timezone.utc)
        prefix = self._settings.audit_log_prefix.rstrip("/")
        return f"{prefix}/{now:%Y/%m/%d}/{record.request_id}.json"


__all__ = ["AuditLogRecord", "AuditMiddleware", "mask_mapping", "mask_value"]
