"""relay.inputs package

Adapters that read from external sources and translate the payloads into the
relay's own models.

Modules
-------
* discord – Read a channel and its recent messages via the Discord REST API.
"""
