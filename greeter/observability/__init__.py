"""Console logging and operation timing for the greeter service.

structlog renders one ``<timestamp> [<level>] <message>`` line per event;
``AppLogger`` is passed explicitly to whoever needs to log, and ``Monitor``
tags the lines of one operation with a correlation id.
"""
