"""
Configuration management for Promocheck.

- **app_configuration.py**: File-locked YAML loader for ``config/app_config.yml``.
  Falls back gracefully on missing or malformed config files.

- **review_settings.py**: Typed accessors for the ``review`` block (target
  guild and channel, batch size, delays, report fetch limits, field labels).
"""
