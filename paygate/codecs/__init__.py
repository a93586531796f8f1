from paygate.codecs.amount import from_string, to_major, to_major_string, to_minor, to_trimmed_string
from paygate.codecs.attachment import (
    Attachment,
    join_attachment,
    parse_attachment,
    parse_attachment_lenient,
)

__all__ = [
    "Attachment",
    "from_string",
    "join_attachment",
    "parse_attachment",
    "parse_attachment_lenient",
    "to_major",
    "to_major_string",
    "to_minor",
    "to_trimmed_string",
]
