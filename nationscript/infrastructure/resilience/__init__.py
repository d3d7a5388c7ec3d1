"""API Resilience Implementations.

Contains the primary window rate limiter, the telegram cooldown limiter,
the wall clock they wait on, and retries with exponential backoff.
Bounded Context: API Resilience
"""
