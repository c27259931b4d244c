"""Adapters wiring the core to Telegram, HTTP services and SQLite."""
