"""mackerel-agent plugin for dnsdist statistics."""

__version__ = "0.0.4"
