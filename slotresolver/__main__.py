"""
Convenience entry point for running slotresolver as a module.

Usage: python -m slotresolver [command] [options]
"""

from .cli.app import app

if __name__ == "__main__":
    app()
