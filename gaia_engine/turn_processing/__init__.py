"""Turn/command processing helpers.

This package centralizes command types, validation and turn bookkeeping so both
humans and bots flow through the same pipeline and show up consistently in
server logs.
"""
