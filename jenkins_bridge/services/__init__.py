# Services module - external API integrations
from .jenkins import JenkinsClient
from .notifier import Notifier

__all__ = ["JenkinsClient", "Notifier"]
