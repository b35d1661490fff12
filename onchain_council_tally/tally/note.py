"""
Decoding of governance transaction notes.

A governance note is base64 encoded text of the form ``af/gov1:j<json>``.
A JSON object after the prefix is a registration, a JSON array is a vote.
"""
import base64
import binascii
import json
from dataclasses import dataclass
from typing import ClassVar

NOTE_PREFIX = "af/gov1:j"


@dataclass(frozen=True)
class RegistrationNote:
    kind: ClassVar[str] = "registration"
    payload: dict


@dataclass(frozen=True)
class VotingNote:
    kind: ClassVar[str] = "voting"
    payload: tuple


@dataclass(frozen=True)
class UnknownNote:
    kind: ClassVar[str] = "unknown"


DecodedNote = RegistrationNote | VotingNote | UnknownNote

UNKNOWN = UnknownNote()


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def decode_note(note) -> DecodedNote:
    """
    Decode a base64 note into a typed record.
    Never raises, anything that does not follow the protocol is unknown.
    """
    if not isinstance(note, str) or not note:
        return UNKNOWN
    try:
        text = base64.b64decode(note, validate=True).decode("utf-8")
    except (binascii.Error, ValueError):
        return UNKNOWN
    if not text.startswith(NOTE_PREFIX):
        return UNKNOWN
    body = text[len(NOTE_PREFIX) :]
    if not body or body[0] not in "{[":
        return UNKNOWN
    try:
        data = json.loads(body)
    except (ValueError, RecursionError):
        return UNKNOWN
    if body[0] == "{":
        if not isinstance(data, dict):
            return UNKNOWN
        # non numeric fields carry no stake information and are dropped
        return RegistrationNote(
            payload={k: v for k, v in data.items() if _is_number(v)}
        )
    if not isinstance(data, list):
        return UNKNOWN
    return VotingNote(payload=tuple(data))


def encode_note(payload) -> str:
    """
    Inverse of decode_note for well formed payloads, used to build fixtures.
    """
    text = NOTE_PREFIX + json.dumps(payload, separators=(",", ":"))
    return base64.b64encode(text.encode("utf-8")).decode("ascii")
