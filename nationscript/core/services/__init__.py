"""Application services: request execution and daily dump reading."""
