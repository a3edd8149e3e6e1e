"""Realtime infrastructure (Socket.IO presence and chat events)."""
