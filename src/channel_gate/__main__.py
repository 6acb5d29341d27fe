# src/channel_gate/__main__.py

from .run import main

main()
