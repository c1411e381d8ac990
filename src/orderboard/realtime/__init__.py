"""Real-time infrastructure — in-process pub/sub + WebSocket.

Learn: Events flow through two steps:
1. Services → BroadcastHub.publish (one frame, offered to every connection)
2. Per-connection queue → sender task → WebSocket client

Publishers never wait on a client; each client drains its own queue.
"""
