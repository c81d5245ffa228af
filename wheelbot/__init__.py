"""Invite-reward wheel bot: provably-fair daily spins, invitation keys and notifications."""

__version__ = "0.1.0"
