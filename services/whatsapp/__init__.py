from .client import WhatsAppCloudAPI

__all__ = ["WhatsAppCloudAPI"]
