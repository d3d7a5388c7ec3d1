"""Core Application Layer: Orchestrates use cases and application logic.

Holds the decode framework, the endpoint builders, the request and dump
services and the command handler used by the CLI.
"""
