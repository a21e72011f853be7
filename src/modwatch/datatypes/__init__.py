"""
Plain data types shared by the bot, the queue service and the audit store.

- **discord_datatypes.py**: Snowflake ID wrappers (user, guild, channel, message, role)
- **action_datatypes.py**: ActionType and the append-only ModerationLog record
- **flag_datatypes.py**: FlagType, ModerationFlag, classifier verdicts and queue pages
- **permission_datatypes.py**: Capability, the named Discord permission bits
- **outcome_datatypes.py**: Result values for commands, notifications and the listener
"""
