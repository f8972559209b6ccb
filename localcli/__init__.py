"""localcli: a local coding assistant that turns model output into file edits, commands and git actions."""

__version__ = "0.1.0"
