"""
py-cord cogs registered by ``modwatch.main``.

- **moderation_cmds.py**: /kick, /ban, /mute and /warn
- **message_listener.py**: message-rate counting and automatic moderation
- **events_listener.py**: startup sync, role updates and command errors
"""
