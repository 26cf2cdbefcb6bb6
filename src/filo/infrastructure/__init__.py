"""Infrastructure layer: filesystem and ruleset storage."""
