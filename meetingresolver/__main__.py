"""
Convenience entry point for running meetingresolver as a module.

Usage: python -m meetingresolver [command] [options]
"""

from .cli.app import app

if __name__ == "__main__":
    app()
