"""
Command line interface for the Migrations SDK.
"""

from .main import bootstrap, build_app, ledger_from_config, parse_steps

__all__ = ["bootstrap", "build_app", "ledger_from_config", "parse_steps"]
