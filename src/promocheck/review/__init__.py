"""
Promotion request review engine.

This package holds everything that decides what a request's annotations
should be. It talks to Discord only through the interfaces in ``ports.py``.

- **patterns.py**: Regexes for identity claims, rank transitions, message
  links and user mentions.

- **reactions.py**: Maps a message's reactions to Approved / Rejected /
  Undecided.

- **report_resolver.py**: Follows the report link (cache first, then a
  bounded remote fetch) and judges the report's own approval.

- **field_validator.py**: Pure per-field checks producing verdicts.

- **annotations.py**: Marker emoji and the single label rewrite step.

- **request_validator.py**: Orchestrates a review run over one request or
  the latest requests of the channel.

- **scheduler.py**: Debounced, serialized scheduling of review runs.
"""
