"""
# Contact Routes

`POST /api/contact` accepts a message from the site's contact form. Messages are logged for
the site owner and not stored.
"""

from fastapi import APIRouter

from tech_blog_api.managers.logging_manager import get_logger
from tech_blog_api.models.common import envelope
from tech_blog_api.models.contact_models import ContactMessageRequest

logger = get_logger(prefix="[Contact]")

router = APIRouter(prefix="/contact", tags=["contact"])


@router.post("")
@router.post("/", include_in_schema=False)
async def send_contact_message(request: ContactMessageRequest):
    logger.info("New contact message from %s (%s): %s", request.name, request.email, request.message)
    return envelope(message="Message sent successfully!")
