"""Payload acceptance policies consulted before an upload is stored."""
from typing import Protocol

from fileshare.config import Settings


class AcceptancePolicy(Protocol):
    def accepts(self, filename: str, mime_type: str) -> bool:
        ...


class AcceptAllPolicy:
    """The store is content-agnostic: every declared type is accepted."""

    def accepts(self, filename: str, mime_type: str) -> bool:
        return True


class MimeTypeAllowList:
    def __init__(self, mime_types: list[str]):
        self.mime_types = {m.strip().lower() for m in mime_types if m.strip()}

    def accepts(self, filename: str, mime_type: str) -> bool:
        # Parameters such as "; charset=utf-8" don't affect the decision
        base_type = mime_type.split(";", 1)[0].strip().lower()
        return base_type in self.mime_types


def build_acceptance_policy(config: Settings) -> AcceptancePolicy:
    if config.ALLOWED_MIME_TYPES.strip():
        return MimeTypeAllowList(config.ALLOWED_MIME_TYPES.split(","))
    return AcceptAllPolicy()
