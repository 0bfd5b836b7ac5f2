from pydantic import EmailStr, Field, field_validator

from tech_blog_api.models.common import CamelModel


class ContactMessageRequest(CamelModel):
    """A visitor's message from the contact form."""

    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    message: str = Field(..., min_length=1, max_length=5000)

    @field_validator("name", "message", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v
