"""Shared lightweight schemas."""

from pydantic import BaseModel


class Success(BaseModel):
    """Acknowledgement returned by endpoints that have nothing else to report."""

    success: bool = True
