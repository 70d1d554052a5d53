from ..client import HordeClient
from ..scheduler import PollScheduler

_client = HordeClient()
_scheduler = PollScheduler(_client)


def get_client() -> HordeClient:
    return _client


def get_scheduler() -> PollScheduler:
    return _scheduler
