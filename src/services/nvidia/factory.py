from typing import Optional

from src.config import Settings, get_settings
from src.services.nvidia.client import NvidiaClient


def make_nvidia_client(settings: Optional[Settings] = None) -> NvidiaClient:
    """
    Create an NVIDIA client from the given settings.

    Returns:
        NvidiaClient: Configured streaming generation client
    """
    settings = settings or get_settings()
    return NvidiaClient(
        api_key=settings.nvidia_api_key,
        base_url=settings.nvidia_base_url,
        default_model=settings.nvidia_model,
        timeout=settings.nvidia_timeout,
    )
