"""
Discord integration for Promocheck.

- **gateway.py**: py-cord implementation of the review collaborator interfaces.
- **cogs/**: Event listeners and slash commands.
"""
