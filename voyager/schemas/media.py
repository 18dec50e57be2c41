"""Schemas for uploaded media."""

from pydantic import BaseModel


class UploadedImage(BaseModel):
    url: str
    public_id: str
