"""Transport-neutral request models, transports, classification and the authenticated client."""
