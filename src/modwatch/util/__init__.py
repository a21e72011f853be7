"""
Utility functions and helpers for modwatch.

- **logger.py**: Centralized logging configuration with colored console output,
  rotating file handlers, and per-session log files. Suppresses noise from
  third-party libraries.

- **discord_utils.py**: Permission and role-hierarchy checks on live guild
  objects, best-effort message deletion, embed field truncation.
"""
