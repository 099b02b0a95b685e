"""
Allow docwen to be invoked as a module.

This enables running the CLI with:
    python -m docwen
"""

from docwen.cli.main import app

if __name__ == "__main__":
    app()
