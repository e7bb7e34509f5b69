"""Real-time signaling relay for peer-to-peer call setup."""
