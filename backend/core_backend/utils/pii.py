"""
PII helpers for customer contact details carried on orders.

Orders store a customer's name, phone and email so café staff can call out
pickups. Anything that leaves the staff channel (public queue boards, logs)
goes through these helpers first.
"""
from typing import Dict, Any, Optional

from django.conf import settings


class PIIProtection:
    """Utilities for masking customer contact details."""

    PII_FIELDS = {
        'customer_name', 'customer_email', 'customer_phone',
        'email', 'phone', 'name',
    }

    @staticmethod
    def mask_display_name(name: Optional[str]) -> str:
        """
        Anonymize a customer name for public queue boards.

        Only the first character survives and the mask has a fixed width,
        so the board does not leak the length of the name.
        Example: Maria -> M***
        """
        mask = getattr(settings, 'ORDER_PUBLIC_NAME_MASK', '***')
        name = (name or '').strip()
        if not name:
            return mask
        return name[0] + mask

    @staticmethod
    def scrub_pii_from_dict(data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Redact PII fields recursively.
        Used for log context and error payloads.
        """
        if not isinstance(data, dict):
            return data

        scrubbed = {}
        for key, value in data.items():
            if key.lower() in PIIProtection.PII_FIELDS:
                scrubbed[key] = '[REDACTED]'
            elif isinstance(value, dict):
                scrubbed[key] = PIIProtection.scrub_pii_from_dict(value)
            elif isinstance(value, list):
                scrubbed[key] = [
                    PIIProtection.scrub_pii_from_dict(item) if isinstance(item, dict) else item
                    for item in value
                ]
            else:
                scrubbed[key] = value

        return scrubbed
