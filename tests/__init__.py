"""
Test Suite

Contains unit tests for the OKEx WebSocket client.

Structure:
- tests/unit/: Tests for individual components (errors, models, session, commands)

The WebSocket is replaced with an in-memory mock, so no test touches the
network. Uses pytest with pytest-asyncio for testing async functionality.
"""
