from .docker import DockerClient
from .process import Channel, StreamedProcess

__all__ = ["DockerClient", "Channel", "StreamedProcess"]
