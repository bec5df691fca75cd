"""
Package: sqs_queue
Description: Queue operations against the remote message-queue service.

Endpoint resolution, batch coordination, the message visibility
lifecycle and queue lifecycle calls, all issued through a pluggable
request executor.
"""
