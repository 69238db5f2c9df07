"""Haberdasher log routing — classifies stderr lines and ships them to a sink.

Each captured line is classified (structured JSON passes through, anything
else is wrapped in an ECS envelope) and handed to exactly one configured
sink.  Sinks are pluggable targets implementing the BaseSink protocol and
are looked up by name in a SinkRegistry built at startup.

The LogDispatcher runs classification and delivery on a bounded worker
pool, so delivery order across lines is not guaranteed.
"""
