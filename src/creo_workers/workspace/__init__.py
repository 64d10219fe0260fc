"""Worker directories — the store that holds them and the provisioner that builds them."""

from .provisioner import WorkerProvisioner
from .store import WorkerInfo, WorkerStore

__all__ = ["WorkerInfo", "WorkerProvisioner", "WorkerStore"]
