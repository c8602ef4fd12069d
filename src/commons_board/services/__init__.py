"""Service layer for Commons Board: interaction handlers, ledger, dispatcher, moderation."""
