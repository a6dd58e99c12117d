"""
Utility helpers for Promocheck.

- **logger.py**: Centralized logging configuration with colored console output
  through prompt_toolkit, a per-session log file, and suppression of noisy
  Discord and networking loggers.
"""
