"""Outbound collaborator clients."""

from consult_core.clients.signaling_client import JWTSignalingProvider, SignalingProvider

__all__ = ["JWTSignalingProvider", "SignalingProvider"]
