"""Request submission module."""

from .submitter import IRequestSubmitter, RequestSubmitter

__all__ = ["IRequestSubmitter", "RequestSubmitter"]
