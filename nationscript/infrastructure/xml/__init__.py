"""Markup event sources feeding the decode framework."""
