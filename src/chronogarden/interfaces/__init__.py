"""Record contracts and adapters for the services around the engine."""
