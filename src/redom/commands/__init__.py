"""REPL commands for redom.

Imported by redom.app for decorator registration.

PUBLIC API:
  - connection: connect, disconnect, status
  - settings: config
  - render: render
"""
