"""AWS adapters (boto3)."""

from ragdesk.boundary.aws.pipeline_dispatcher import PipelineDispatcher, PipelineJobMessage
from ragdesk.boundary.aws.s3_client import S3DocumentClient

__all__ = ["PipelineDispatcher", "PipelineJobMessage", "S3DocumentClient"]
