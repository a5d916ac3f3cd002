from .models import AppConfig, ProbeSuccess, ProbeFailure, ProbeResult, PollReport
from .dispatcher import ServerPoller, ResultAggregator
