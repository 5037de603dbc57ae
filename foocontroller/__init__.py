"""Controller that keeps a Deployment in step with each Foo resource."""

__version__ = "0.1.0"
__all__ = ["apps", "controller", "meta", "signals", "types", "workqueue"]