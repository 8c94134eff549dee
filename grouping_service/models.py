"""
Tab Grouper - Grouping Service Pydantic Models

Tab descriptors, the completion request payload and API response models.
"""

import json
from dataclasses import dataclass
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


def display_text(value: Any) -> str:
    """Render a loosely typed JSON value the way it reads in a prompt line."""
    if value is None:
        return "undefined"
    if isinstance(value, str):
        return value
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return json.dumps(value)


class Tab(BaseModel):
    """A browser tab descriptor sent by the extension"""
    id: Any = Field(default=None, description="Tab id assigned by the browser, normally an integer")
    title: str = Field(default="", description="Tab title")
    url: str = Field(default="", description="Tab URL")

    model_config = ConfigDict(extra="ignore")

    @field_validator("title", "url", mode="before")
    @classmethod
    def _coerce_text(cls, value):
        if value is None:
            return ""
        return display_text(value)


class GroupTabsRequest(BaseModel):
    """Request model for /group-tabs (documentation only, the body is validated by hand)"""
    tabs: list[Tab] = Field(..., description="Tabs to group")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "tabs": [
                    {"id": 1, "title": "Amazon.com: Headphones", "url": "https://www.amazon.com/s?k=headphones"},
                    {"id": 2, "title": "BBC News - Home", "url": "https://www.bbc.com/news"},
                ]
            }
        }
    )


@dataclass(frozen=True)
class CompletionRequest:
    """Payload handed to the completion client"""
    model: str
    prompt: str


class ErrorResponse(BaseModel):
    """Error response model"""
    error: str = Field(..., description="Error message")
    details: Optional[str] = Field(None, description="Underlying error message")
    attempts: Optional[int] = Field(None, description="Upstream attempts made")
    responseKeys: Optional[list[str]] = Field(None, description="Top-level keys of an unrecognized response")
    rawResponse: Optional[str] = Field(None, description="First 500 characters of the model output")
    index: Optional[int] = Field(None, description="Position of an invalid tab entry")


class HealthResponse(BaseModel):
    """Health check response"""
    status: str = Field(..., description="Service status")
    uptime: float = Field(..., description="Seconds since the process started")
