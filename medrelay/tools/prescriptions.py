"""
Mock prescription attachment.

Uploaded files are staged by the channel and referenced by an opaque id;
storage and OCR live outside the conversation core.
"""

import logging

from medrelay.tools import catalog

logger = logging.getLogger(__name__)


def attach_prescription(order_id: str, attachment_ref: str) -> None:
    """Link a staged upload to an existing order. Raises NotFound for unknown orders."""
    order = catalog.track_order(order_id)
    order.prescription_refs.append(attachment_ref)
    logger.info("Prescription %s attached to order %s", attachment_ref, order_id)
