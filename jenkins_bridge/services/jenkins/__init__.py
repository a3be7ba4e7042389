# Jenkins services - Jenkins REST API integration
from .client import JenkinsClient
from .schemas import BuildStatus, JobInfo, JobParameter, TriggerResult

__all__ = ["JenkinsClient", "BuildStatus", "JobInfo", "JobParameter", "TriggerResult"]
