"""Order Board — real-time order tracking service.

Clients create and update orders over HTTP, and every connected
WebSocket client receives a live, ordered view of the order set.
"""

__version__ = "0.1.0"
