"""
modwatch - Discord moderation pipeline

Core Components:

- **Manual moderation**: /kick, /ban, /mute and /warn slash commands that DM the
  target, enforce the action on Discord and append an audit record
- **Automatic moderation**: classifies every message in the monitored guild,
  removes flagged content and stores a flag for human review
- **Review queue**: HTTP API to page through flags and resolve, dismiss or
  escalate them
- **Audit store**: SQLite database (aiosqlite) holding action logs, flags, and
  the guild/role data the queue's permission checks read

Usage:
    from modwatch.main import main
    main()  # Starts the bot

    from modwatch.api.server import main as serve
    serve()  # Starts the queue API
"""
