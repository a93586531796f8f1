"""
Attachment codec.

Most gateways give us one free-text field (subject, description, attach,
metadata) that comes back untouched when we query the payment later. We
pack the product name, its display name and the provider name into that
field so the notification handler can recover them.
"""

import logging
from typing import NamedTuple

from paygate.errors import AttachmentDecodeError

logger = logging.getLogger("paygate.codecs.attachment")

SEPARATOR = "|"


class Attachment(NamedTuple):
    product_name: str
    product_display_name: str
    provider_name: str


EMPTY_ATTACHMENT = Attachment("", "", "")


def join_attachment(product_name: str, product_display_name: str, provider_name: str) -> str:
    return SEPARATOR.join([product_name, product_display_name, provider_name])


def parse_attachment(value: str) -> Attachment:
    """
    Split a packed attachment string back into its three fields.

    Raises:
        AttachmentDecodeError: If the string does not hold exactly three fields.
    """
    tokens = (value or "").split(SEPARATOR)
    if len(tokens) != 3:
        raise AttachmentDecodeError(
            f"parse_attachment() error: expected 3 fields, got: {len(tokens)}"
        )
    return Attachment(*tokens)


def parse_attachment_lenient(value: str) -> Attachment:
    """Like parse_attachment, but a malformed string yields empty fields."""
    try:
        return parse_attachment(value)
    except AttachmentDecodeError as e:
        logger.debug("Ignoring malformed attachment %r: %s", value, e)
        return EMPTY_ATTACHMENT
