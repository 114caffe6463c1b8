"""Queue and topic pair with a topic-to-queue subscription."""

from .builder import StackBuilder
from ..resources.kinds import ResourceKind


def messaging_stack(prefix: str = "EksExample") -> StackBuilder:
    """Declare a queue (300s visibility timeout), a topic, and an SQS subscription of the queue to the topic."""
    stack = StackBuilder()
    queue = stack.add(ResourceKind.QUEUE, f"{prefix}Queue", visibility_timeout_seconds=300)
    topic = stack.add(ResourceKind.TOPIC, f"{prefix}Topic")
    stack.add(
        ResourceKind.SUBSCRIPTION, f"{prefix}Subscription",
        topic_arn=topic.ref("arn"),
        protocol="sqs",
        endpoint=queue.ref("arn"),
    )
    return stack
