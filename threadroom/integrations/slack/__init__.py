# Slack integration module
from threadroom.integrations.slack.client import SlackHost
from threadroom.integrations.slack.models import SlackCommandPayload

__all__ = ["SlackHost", "SlackCommandPayload"]
