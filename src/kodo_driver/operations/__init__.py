"""
Operations package - output formatting and error mapping for the CLI.

Keeps CLI commands thin: printers own all human-readable output and mappers
own the exception-to-exit-code policy.
"""
from .mappers import exit_code_for, run_and_exit

__all__ = ["exit_code_for", "run_and_exit"]
