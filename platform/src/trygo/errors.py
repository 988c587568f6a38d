"""Error taxonomy for the content pipeline."""

from __future__ import annotations


class PipelineError(Exception):
    """Base error for every failure raised by the pipeline."""


class ValidationError(PipelineError):
    """Bad or missing input. Never retried."""


class ScopeError(ValidationError):
    """An entity was addressed under a (project, hypothesis) pair it does not belong to."""


class NotFoundError(PipelineError):
    """A referenced entity does not exist."""

    def __init__(self, kind: str, entity_id: str) -> None:
        super().__init__(f"{kind} not found: {entity_id}")
        self.kind = kind
        self.entity_id = entity_id


class UpstreamError(PipelineError):
    """An adapter call (LLM, image, WordPress) failed.

    The message is the adapter's own message so callers can show it verbatim.
    """

    def __init__(self, service: str, message: str) -> None:
        super().__init__(message)
        self.service = service


class PublishDateConflict(PipelineError):
    """Another content item in the same scope already holds the publish date."""

    def __init__(self, publish_date: object, conflicting_id: str) -> None:
        super().__init__(
            f"Publish date {publish_date} is already taken by content item {conflicting_id}"
        )
        self.publish_date = publish_date
        self.conflicting_id = conflicting_id


class ParseError(PipelineError):
    """The LLM response could not be interpreted, even after fallback recovery."""


class StatusSyncError(PipelineError):
    """A live post exists but the local status write failed.

    Recoverable by reconciliation; the post reference is kept on the error.
    """

    def __init__(
        self,
        content_item_id: str,
        post_id: int | None,
        post_url: str | None,
        cause: BaseException,
    ) -> None:
        super().__init__(
            f"WordPress post {post_id} ({post_url}) was created for content item "
            f"{content_item_id} but the status update failed: {cause}"
        )
        self.content_item_id = content_item_id
        self.post_id = post_id
        self.post_url = post_url
