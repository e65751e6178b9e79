"""Workspace Chat - a terminal chat client organised into workspaces."""

__version__ = "0.1.0"
