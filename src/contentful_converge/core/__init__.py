"""Contentful Management API collaborator: entities, errors and HTTP verbs."""

from .client import ContentfulClient
from .errors import ApiError, ErrorDetail, ErrorKind

__all__ = ["ApiError", "ContentfulClient", "ErrorDetail", "ErrorKind"]
