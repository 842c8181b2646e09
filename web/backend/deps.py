from channel_schedule.core.config import Config, load_config
from channel_schedule.domain.schedule import SlotStore


def get_config() -> Config:
    """FastAPI dependency for configuration."""
    return load_config()


def get_store() -> SlotStore:
    """FastAPI dependency for the slot store."""
    return SlotStore(config=get_config().broadcast)
