"""SKR events listener - bridges watcher webhooks into an in-process event source."""

__version__ = "0.1.0"
