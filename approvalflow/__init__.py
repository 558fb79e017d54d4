"""approvalflow - approval workflow graph model and pre-publish validation."""

__version__ = "0.1.0"
