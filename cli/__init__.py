"""Command line client for the facility dashboard service.

The Typer application is ``cli.app:app``; it is not re-exported here so that
``cli.app`` keeps naming the module.
"""
