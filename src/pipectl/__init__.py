"""pipectl - deploy pipelines to a remote control plane and wait for them."""

__version__ = "0.1.0"
