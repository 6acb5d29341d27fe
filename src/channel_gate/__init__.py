# src/channel_gate/__init__.py
