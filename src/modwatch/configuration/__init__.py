"""
Configuration management for modwatch.

- **app_configuration.py**: YAML configuration loader (``config/app_config.yml``)
  guarded by an fcntl shared lock, with environment overrides for
  deployment values such as the monitored guild and the auto-moderation flag.

- **settings.py**: Typed section helpers (moderation commands, auto-moderation,
  classifier, monitoring, queue API) and the mute/ban boundary constants.
"""
