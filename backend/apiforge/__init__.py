"""apiforge: provisioning and generation of API-test workspaces."""

__version__ = "1.0.0"
