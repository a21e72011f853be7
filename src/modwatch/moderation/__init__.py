"""
Moderation pipeline for modwatch.

- **permissions.py**: Capability lookup over the synchronised guild roles,
  used by the review queue.

- **executor.py**: Manual kick, ban, mute and warn. Validates the target,
  DMs it, calls the Discord enforcement primitive and appends an audit record.

- **classifier.py**: Content classifiers (OpenAI moderation endpoint and an
  offline keyword filter).

- **auto_moderator.py**: Per-message automatic moderation: classify, delete,
  store a flag, notify the author and the moderation log channel.

- **queue_service.py**: Paginated listing and resolve/dismiss/escalate of
  stored flags for human moderators.

- **notifications.py** / **moderation_embed.py**: Best-effort delivery and
  the embeds it sends.
"""
