"""
Code Dispatch
=============
Templates, channel senders and the router that joins them.
"""

from .models import DeliveryResult, MessageStatus, SmsMessage, EmailMessage
from .senders import BaseSender, SmsSender, EmailSender, VoiceSender
from .http_senders import (
    MessagingServiceClient,
    MessagingServiceResponse,
    HttpSmsSender,
    HttpEmailSender,
    HttpVoiceSender,
)
from .templates import SMS_TEMPLATES, EMAIL_TEMPLATES, TemplateCatalog
from .router import DispatchRouter

__all__ = [
    # Models
    "DeliveryResult",
    "MessageStatus",
    "SmsMessage",
    "EmailMessage",
    # Senders
    "BaseSender",
    "SmsSender",
    "EmailSender",
    "VoiceSender",
    "MessagingServiceClient",
    "MessagingServiceResponse",
    "HttpSmsSender",
    "HttpEmailSender",
    "HttpVoiceSender",
    # Templates
    "SMS_TEMPLATES",
    "EMAIL_TEMPLATES",
    "TemplateCatalog",
    # Router
    "DispatchRouter",
]
