"""
telesync 的入口点：python -m telesync
"""

from telesync.cli.commands import app

if __name__ == "__main__":
    app()
