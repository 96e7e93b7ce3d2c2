"""
Core Package

Contains the venue-agnostic pieces shared by every exchange connector:
- errors: The unified error taxonomy (ClientError and its tags)
- config: Pydantic settings (endpoint URLs, heartbeat, queue sizes)
- logging: Library logger setup and frame tracing helpers
- utils: Timestamp and decimal helpers
"""
