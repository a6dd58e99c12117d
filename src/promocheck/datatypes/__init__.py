"""
Data types for Promocheck.

- **discord_datatypes.py**: Type-safe wrappers for Discord snowflake IDs.
- **review_datatypes.py**: Snapshots of requests, members and roles, plus the
  Decision / Verdict enums and review outcomes.
"""
