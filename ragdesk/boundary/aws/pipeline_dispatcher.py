"""
Pipeline job dispatcher.

Enqueues one processing job per confirmed upload on the SQS queue consumed
by the ingestion worker. The worker reports back through the stage events
endpoint.

Dependencies: boto3, pydantic
System role: Handoff from upload confirmation to document processing
"""

import logging
import uuid
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from pydantic import BaseModel

from ragdesk.core.exceptions import DispatchError

logger = logging.getLogger(__name__)


class PipelineJobMessage(BaseModel):
    """SQS message body for one processing job."""

    document_id: uuid.UUID
    project_id: uuid.UUID
    storage_key: str
    filename: str
    file_size_bytes: int
    embedding_model: str


class PipelineDispatcher:
    """Sends processing jobs to SQS."""

    def __init__(self, queue_url: str, region: str = "us-east-1", client: Any | None = None) -> None:
        self._queue_url = queue_url
        self._sqs_client = client or boto3.client("sqs", region_name=region)

    def dispatch(self, message: PipelineJobMessage) -> str:
        """
        Enqueue a processing job.

        Args:
            message: Job description

        Returns:
            str: SQS message id

        Raises:
            DispatchError: Queue not configured or send failed
        """
        if not self._queue_url:
            raise DispatchError(
                "Pipeline queue URL is not configured",
                {"document_id": str(message.document_id)},
            )
        try:
            response = self._sqs_client.send_message(
                QueueUrl=self._queue_url,
                MessageBody=message.model_dump_json(),
                MessageAttributes={
                    "project_id": {"DataType": "String", "StringValue": str(message.project_id)},
                },
            )
        except (ClientError, BotoCoreError) as e:
            logger.exception(
                "Failed to enqueue processing job",
                extra={"document_id": str(message.document_id), "error": str(e)},
            )
            raise DispatchError(
                f"Failed to enqueue processing job: {e}",
                {"document_id": str(message.document_id)},
            ) from e

        message_id = response.get("MessageId", "")
        logger.info(
            "Processing job enqueued",
            extra={"document_id": str(message.document_id), "message_id": message_id},
        )
        return message_id
