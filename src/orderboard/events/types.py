"""Event type constants.

Learn: Centralizing event types as constants prevents typos and
makes it easy to discover all event types in the system. These are
the `type` values of the frames pushed to WebSocket clients.
"""

# Sent once per connection, right after it joins
INITIAL = "initial"

# Broadcast to every connection
ORDER_CREATED = "newOrder"
ORDER_UPDATED = "updateOrder"
