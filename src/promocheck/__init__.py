"""
Promocheck - Promotion Request Reviewer for Discord

Promocheck watches a review channel where a form bot posts promotion
requests as embeds, and marks each request field with a verdict so human
reviewers can see at a glance what still needs attention.

Core Components:

- **Pattern matching**: Extracts the claimed "Name Surname | ID", the rank
  transition "Rank [n] → Rank [m]" and report jump links from field text
- **Reaction decisions**: Reads approve/reject reactions on requests and on
  linked reports
- **Request review**: Cross-checks each request against the sender's nickname
  and roles and writes all field annotations back in one edit
- **Scheduling**: Debounced, per-channel review runs triggered by Discord events

Usage:
    from promocheck.main import main
    main()  # Connects to Discord and starts reviewing
"""
