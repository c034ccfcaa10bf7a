"""Envelope protocol: data model and codec."""

from .envelope import Envelope
from .codec import ProtocolCodec

__all__ = ["Envelope", "ProtocolCodec"]
