"""HTTP surface of the moderation review queue (FastAPI)."""
