"""
Entry point for running the package as a module.

Usage:
    python -m decision_intel <command>
"""

from decision_intel.cli import cli

if __name__ == "__main__":
    cli()
