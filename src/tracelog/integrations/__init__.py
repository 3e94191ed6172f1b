"""Adapters presenting the tracelog Logger to other libraries.

Submodules are imported on demand so optional stacks stay optional:

    >>> from tracelog.integrations.sqlalchemy import SQLAlchemyLogger
    >>> from tracelog.integrations.bus import BusLogger
    >>> from tracelog.integrations.stdlib import BridgeHandler
"""
