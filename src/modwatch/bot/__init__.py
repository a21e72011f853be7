"""Discord bot runtime: service wiring, guild synchronisation and cogs."""
