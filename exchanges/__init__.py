"""
Exchange Connectors Package

Each exchange has its own subfolder with:
- ws_client.py: WebSocket session, event loop and trading commands
- models.py: Pydantic wire models for requests, acknowledgements and pushes
"""
